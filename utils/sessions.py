"""In-memory session store for per-visitor page state.

Each visitor's page object lives here under a random session id carried in
a cookie.  Entries expire after ``ttl_seconds`` of inactivity (every access
slides the expiry) and at most ``maxsize`` entries are kept; when full, the
least recently used entry is evicted.  Evicted and expired values are passed
to ``on_evict`` so they can release what they own.
"""

import secrets
import threading
import time
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


def new_session_id() -> str:
    return secrets.token_urlsafe(16)


class SessionStore(Generic[T]):
    """Thread-safe TTL store keyed by session id.

    Usage::

        store = SessionStore(factory=BudgetPage, ttl_seconds=1800)
        sid, page = store.get_or_create(request.cookies.get("sid"))
    """

    def __init__(
        self,
        factory: Callable[[], T],
        maxsize: int = 1000,
        ttl_seconds: float = 1800.0,
        on_evict: Optional[Callable[[T], Any]] = None,
    ) -> None:
        self._factory = factory
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        self._on_evict = on_evict
        # Maps session id -> (value, expires_at)
        self._store: dict[str, tuple[T, float]] = {}
        self._lock = threading.Lock()
        self._created = 0
        self._evicted = 0

    def get(self, session_id: Optional[str]) -> Optional[T]:
        """Return the live value for *session_id*, or None."""
        if not session_id:
            return None
        evicted = []
        with self._lock:
            entry = self._store.get(session_id)
            if entry is None:
                return None
            value, expires_at = entry
            now = time.monotonic()
            if now > expires_at:
                del self._store[session_id]
                evicted.append(value)
                value = None
            else:
                self._store[session_id] = (value, now + self._ttl)
        self._release(evicted)
        return value

    def get_or_create(self, session_id: Optional[str]) -> tuple[str, T]:
        """Return ``(session_id, value)``, creating a new session if needed."""
        value = self.get(session_id)
        if value is not None:
            return session_id, value
        new_id = new_session_id()
        value = self._factory()
        evicted = []
        with self._lock:
            evicted.extend(self._purge_expired())
            if len(self._store) >= self._maxsize:
                # Evict the entry that expires soonest (least recently used)
                oldest = min(self._store, key=lambda k: self._store[k][1])
                evicted.append(self._store.pop(oldest)[0])
            self._store[new_id] = (value, time.monotonic() + self._ttl)
            self._created += 1
        self._release(evicted)
        return new_id, value

    def delete(self, session_id: str) -> None:
        with self._lock:
            entry = self._store.pop(session_id, None)
        if entry is not None:
            self._release([entry[0]])

    def clear(self) -> None:
        with self._lock:
            values = [v for v, _ in self._store.values()]
            self._store.clear()
        self._release(values)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "size": len(self._store),
                "created": self._created,
                "evicted": self._evicted,
            }

    def _purge_expired(self) -> list[T]:
        now = time.monotonic()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        return [self._store.pop(k)[0] for k in expired]

    def _release(self, values: list[T]) -> None:
        if not values:
            return
        with self._lock:
            self._evicted += len(values)
        if self._on_evict is None:
            return
        for value in values:
            self._on_evict(value)
