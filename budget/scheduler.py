"""
Coalescing update scheduler.

Any number of ``request_update()`` calls made before the next frame collapse
into one refresh.  A single pending flag guards the one outstanding
callback; the flag is cleared just before the refresh runs, so a new burst
can schedule the next frame.

The frame primitive is ``schedule(callback)``.  On the server it is the
asyncio loop's ``call_soon``: the refresh runs on the next loop iteration,
after the handler that requested it has finished.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Schedule = Callable[[Callable[[], None]], Any]


def next_loop_iteration(callback: Callable[[], None]) -> asyncio.Handle:
    """Run *callback* on the running event loop's next iteration."""
    return asyncio.get_running_loop().call_soon(callback)


class UpdateScheduler:
    """Single-flight scheduler for a refresh action.

    Args:
        refresh: Action to run once per frame.
        schedule: Frame primitive; defaults to :func:`next_loop_iteration`.
    """

    def __init__(self, refresh: Callable[[], None], schedule: Optional[Schedule] = None) -> None:
        self._refresh = refresh
        self._schedule = schedule or next_loop_iteration
        self._pending = False
        self.request_count = 0
        self.refresh_count = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def request_update(self) -> None:
        self.request_count += 1
        if self._pending:
            return
        self._pending = True
        self._schedule(self._flush)

    def _flush(self) -> None:
        self._pending = False
        self.refresh_count += 1
        logger.debug(
            "refresh #%d after %d request(s)", self.refresh_count, self.request_count,
        )
        self._refresh()

    async def settle(self) -> None:
        """Yield to the loop until no refresh is pending."""
        while self._pending:
            await asyncio.sleep(0)
