"""HTTP utilities for Bucks2Bar.

Provides reusable pieces for:
- HTTP sessions with retry logic and connection pooling
- Fetching text resources (HTML fragments) without caches in the way
- Posting JSON and decoding a JSON reply leniently
"""

from typing import Optional, List, Any, Tuple
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

DEFAULT_TIMEOUT = 30


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 0.5,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 0.5)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        Only idempotent methods are retried; a POST that reached the
        server is never sent twice.
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 8):
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_text(url: str, session: Optional[requests.Session] = None,
               timeout: float = DEFAULT_TIMEOUT) -> str:
    """GET *url* bypassing caches and return the body text.

    Raises:
        requests.HTTPError: On a 4xx/5xx reply, with the status in the message.
        requests.RequestException: On connection problems.
    """
    http = session or requests
    resp = http.get(url, headers={"Cache-Control": "no-cache"}, timeout=timeout)
    if not resp.ok:
        raise requests.HTTPError(f"Failed to load {url} ({resp.status_code})", response=resp)
    return resp.text


def post_json(url: str, payload: dict, session: Optional[requests.Session] = None,
              timeout: float = DEFAULT_TIMEOUT) -> Tuple[int, Any]:
    """POST *payload* as JSON; return ``(status_code, body)``.

    A reply that is not JSON decodes to an empty dict.
    """
    http = session or requests
    resp = http.post(url, json=payload, timeout=timeout)
    try:
        body = resp.json()
    except ValueError:
        body = {}
    return resp.status_code, body
