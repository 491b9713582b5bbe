"""HTML fragment loading for Bucks2Bar pages.

A fragment is an HTML snippet stored apart from the page and spliced into a
container at render time.  ``FragmentLoader.include()`` fetches one, lifts
its ``<script>`` elements out (in document order, external and inline
scripts kept apart), and returns the remaining markup.  A fetch that fails
never raises: the fragment's markup becomes a visible warning banner, so
one broken include leaves its siblings untouched.
"""

import asyncio
import html
import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from bs4 import BeautifulSoup

from utils.http import SessionManager, fetch_text

logger = logging.getLogger(__name__)

PARSER = "html.parser"

Fetch = Callable[[str], str]


@dataclass(frozen=True)
class Script:
    """A script lifted out of a fragment."""

    attrs: dict = field(default_factory=dict)
    text: str = ""

    @property
    def src(self) -> Optional[str]:
        return self.attrs.get("src")

    @property
    def is_external(self) -> bool:
        return bool(self.src)


@dataclass(frozen=True)
class Fragment:
    url: str
    html: str
    scripts: list[Script] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def warning_banner(url: str, error: str) -> str:
    return (
        '<div class="alert alert-warning p-2 mb-0">'
        f"Could not load {html.escape(url)}: {html.escape(error)}</div>"
    )


def split_scripts(markup: str) -> tuple[str, list[Script]]:
    """Separate *markup* into script-free HTML and its scripts, in order."""
    soup = BeautifulSoup(markup, PARSER)
    scripts = []
    for tag in soup.find_all("script"):
        attrs = {
            k: " ".join(v) if isinstance(v, list) else v
            for k, v in tag.attrs.items()
        }
        scripts.append(Script(attrs=attrs, text=tag.string or ""))
        tag.decompose()
    return str(soup), scripts


class FragmentLoader:
    """Fetch fragments through *fetch* (HTTP GET over *http*'s session by default)."""

    def __init__(self, fetch: Optional[Fetch] = None,
                 http: Optional[SessionManager] = None) -> None:
        self._http = http or SessionManager()
        self._fetch = fetch or self._fetch_over_http

    def _fetch_over_http(self, url: str) -> str:
        return fetch_text(url, session=self._http.session)

    def include(self, url: str) -> Fragment:
        try:
            markup = self._fetch(url)
            body, scripts = split_scripts(markup)
        except Exception as exc:
            logger.warning("fragment load failed url=%s error=%s", url, exc)
            return Fragment(url=url, html=warning_banner(url, str(exc)), error=str(exc))
        return Fragment(url=url, html=body, scripts=scripts)

    async def include_all(self, targets: Mapping[str, str]) -> dict[str, Fragment]:
        """Load every ``container id -> url`` pair concurrently."""
        names = list(targets)
        fragments = await asyncio.gather(
            *(asyncio.to_thread(self.include, targets[name]) for name in names)
        )
        return dict(zip(names, fragments))
