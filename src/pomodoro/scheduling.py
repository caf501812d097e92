"""Cancellable one-shot and repeating callbacks for driving the session clock."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Optional, Protocol


class ScheduledCall(Protocol):
    """Handle returned for every scheduled callback."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Source of delayed and recurring callbacks on a single thread."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall: ...

    def call_every(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> ScheduledCall: ...


class _RepeatingCall:
    """Fixed-rate repeating callback on an asyncio loop without cumulative drift."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval_seconds: float,
        callback: Callable[[], None],
    ):
        self._loop = loop
        self._interval_seconds = interval_seconds
        self._callback = callback
        self._cancelled = False
        self._deadline = loop.time() + interval_seconds
        self._handle: Optional[asyncio.TimerHandle] = loop.call_at(self._deadline, self._fire)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Reschedule first so a callback that cancels us also cancels the next run.
        self._deadline += self._interval_seconds
        self._handle = self._loop.call_at(self._deadline, self._fire)
        self._callback()


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Must be used from the loop's own thread; other threads hand work over with
    ``loop.call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall:
        return self._loop.call_later(delay_seconds, callback)

    def call_every(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> ScheduledCall:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        return _RepeatingCall(self._loop, interval_seconds, callback)


class _ManualCall:
    def __init__(self, callback: Callable[[], None], interval_seconds: Optional[float]):
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.finished = False
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not (self._cancelled or self.finished)


class ManualScheduler:
    """Deterministic scheduler whose clock only moves when ``advance`` is called.

    Used to simulate hours of countdown in tests and dry runs.
    """

    def __init__(self, start_time: float = 0.0):
        self._now = float(start_time)
        self._sequence = itertools.count()
        self._queue: list[tuple[float, int, _ManualCall]] = []

    def time(self) -> float:
        return self._now

    @property
    def active_calls(self) -> int:
        """Number of scheduled callbacks that may still fire."""
        return sum(1 for _, _, call in self._queue if call.active)

    @property
    def active_repeating_calls(self) -> int:
        return sum(
            1
            for _, _, call in self._queue
            if call.active and call.interval_seconds is not None
        )

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ManualCall(callback, interval_seconds=None)
        self._push(self._now + max(0.0, delay_seconds), call)
        return call

    def call_every(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> ScheduledCall:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        call = _ManualCall(callback, interval_seconds=interval_seconds)
        self._push(self._now + interval_seconds, call)
        return call

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in deadline order.

        Returns the number of callbacks that ran.
        """
        if seconds < 0:
            raise ValueError("seconds must not be negative")

        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, call = heapq.heappop(self._queue)
            if not call.active:
                continue
            self._now = deadline
            if call.interval_seconds is None:
                call.finished = True
            else:
                self._push(deadline + call.interval_seconds, call)
            call.callback()
            fired += 1

        self._now = target
        self._drop_cancelled()
        return fired

    def _push(self, deadline: float, call: _ManualCall) -> None:
        heapq.heappush(self._queue, (deadline, next(self._sequence), call))

    def _drop_cancelled(self) -> None:
        if all(call.active for _, _, call in self._queue):
            return
        self._queue = [entry for entry in self._queue if entry[2].active]
        heapq.heapify(self._queue)
