"""Coalescing scheduler for debounced work on the asyncio event loop.

Holds a single pending slot: the payload, the cancel handle returned by
``loop.call_later`` and the futures of every caller that scheduled work
since the slot was last drained.  A new ``schedule()`` call cancels the
pending handle, replaces the payload and restarts the window.  When the
window elapses uncancelled the latest payload is applied exactly once
and every waiting caller receives that application's result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("mapalister.core.scheduler")

P = TypeVar("P")
R = TypeVar("R")


@dataclass(slots=True)
class _PendingTask(Generic[P, R]):
    payload: P
    handle: asyncio.TimerHandle
    waiters: list[asyncio.Future[R]] = field(default_factory=list)


class CoalescingScheduler(Generic[P, R]):
    """Debounce calls to *apply* so only the last payload in a window runs.

    Args:
        apply: Synchronous callable that performs the work for a payload.
        delay: Coalescing window in seconds.
    """

    def __init__(self, apply: Callable[[P], R], delay: float) -> None:
        if delay < 0:
            msg = f"delay must be >= 0 seconds, got {delay}"
            raise ValueError(msg)
        self._apply = apply
        self._delay = delay
        self._pending: _PendingTask[P, R] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def is_pending(self) -> bool:
        """Whether an application is scheduled but has not run yet."""
        return self._pending is not None

    def schedule(self, payload: P) -> asyncio.Future[R]:
        """Schedule *payload*, superseding any pending payload.

        Must be called from a running event loop.  The returned future
        resolves with the result of the application that finally runs,
        which uses the payload of the last call made within the window.
        """
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[R] = loop.create_future()

        waiters: list[asyncio.Future[R]] = []
        if self._pending is not None:
            self._pending.handle.cancel()
            waiters = self._pending.waiters
            logger.debug("Coalesced pending application | waiters=%d", len(waiters))
        waiters.append(waiter)

        handle = loop.call_later(self._delay, self._fire)
        self._pending = _PendingTask(payload=payload, handle=handle, waiters=waiters)
        return waiter

    def _fire(self) -> None:
        pending = self._pending
        self._pending = None
        if pending is None:
            return

        try:
            result = self._apply(pending.payload)
        except Exception as exc:
            logger.exception("Scheduled application failed")
            for waiter in pending.waiters:
                if not waiter.done():
                    waiter.set_exception(exc)
            return

        for waiter in pending.waiters:
            if not waiter.done():
                waiter.set_result(result)
