"""
Timer queue - the single logical thread the watcher and capture session run on
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback; cancel() is idempotent."""

    __slots__ = ("when", "callback", "args", "cancelled")

    def __init__(self, when: float, callback: Callable[..., Any], args: Tuple[Any, ...]):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"<TimerHandle {getattr(self.callback, '__name__', self.callback)} at {self.when:.3f} {state}>"


class TimerQueue:
    """
    Cooperative timer scheduler.

    Callbacks run only from run_due(), on whichever thread pumps the queue.
    call_soon() may be called from any thread (relay completions use it to
    get back onto the pumping thread).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = TimerHandle(self._clock() + max(delay, 0.0), callback, args)
        with self._lock:
            heapq.heappush(self._heap, (handle.when, next(self._counter), handle))
        return handle

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.call_later(0.0, callback, *args)

    def next_delay(self) -> Optional[float]:
        """Seconds until the earliest live timer; None when nothing is pending."""
        with self._lock:
            while self._heap and self._heap[0][2].cancelled:
                heapq.heappop(self._heap)
            if not self._heap:
                return None
            return max(self._heap[0][0] - self._clock(), 0.0)

    def pending(self) -> int:
        with self._lock:
            return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def run_due(self) -> int:
        """Run every timer that is due now; returns how many ran."""
        ran = 0
        while True:
            with self._lock:
                if not self._heap or self._heap[0][0] > self._clock():
                    break
                _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.cancelled = True
            ran += 1
            try:
                handle.callback(*handle.args)
            except Exception:
                logger.exception("Scheduled callback %r failed", handle)
        return ran
