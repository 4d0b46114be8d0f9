"""Timer scheduling for the phase engine.

Every scheduled callback receives the generation it was armed with so the
engine can drop firings that belong to a cancelled schedule.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

TimerCallback = Callable[[int], None]


class CancelToken:
    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class Scheduler:
    """Base interface. Delays and intervals are in seconds."""

    def schedule_once(
        self, delay: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        raise NotImplementedError

    def schedule_repeating(
        self, interval: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        raise NotImplementedError


class ThreadingScheduler(Scheduler):
    """Runs callbacks on background threads."""

    def schedule_once(
        self, delay: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        timer = threading.Timer(delay, callback, args=(generation,))
        timer.daemon = True
        token = CancelToken(timer.cancel)
        timer.start()
        return token

    def schedule_repeating(
        self, interval: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        stop_event = threading.Event()

        def _worker() -> None:
            while not stop_event.wait(interval):
                try:
                    callback(generation)
                except Exception:
                    logger.exception("Repeating timer callback failed")

        thread = threading.Thread(target=_worker, daemon=True)
        token = CancelToken(stop_event.set)
        thread.start()
        return token


class TkScheduler(Scheduler):
    """Schedules on a Tk main loop through ``after``."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def _ms(self, seconds: float) -> int:
        return max(int(round(seconds * 1000)), 0)

    def schedule_once(
        self, delay: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        job = self._widget.after(self._ms(delay), lambda: callback(generation))
        return CancelToken(lambda: self._widget.after_cancel(job))

    def schedule_repeating(
        self, interval: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        state = {"job": None}
        token = CancelToken(lambda: self._widget.after_cancel(state["job"]))

        def _fire() -> None:
            if token.cancelled:
                return
            state["job"] = self._widget.after(self._ms(interval), _fire)
            callback(generation)

        state["job"] = self._widget.after(self._ms(interval), _fire)
        return token


class VirtualScheduler(Scheduler):
    """Deterministic clock. Time only moves when ``advance`` is called.

    Callbacks due at the same instant fire in the order they were scheduled.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, CancelToken, TimerCallback, int, float]] = []

    def _push(
        self,
        due: float,
        token: CancelToken,
        callback: TimerCallback,
        generation: int,
        interval: float,
    ) -> None:
        heapq.heappush(
            self._queue, (due, next(self._seq), token, callback, generation, interval)
        )

    def schedule_once(
        self, delay: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        token = CancelToken()
        self._push(self.now + delay, token, callback, generation, 0.0)
        return token

    def schedule_repeating(
        self, interval: float, callback: TimerCallback, generation: int
    ) -> CancelToken:
        if interval <= 0:
            raise ValueError("interval must be > 0.")
        token = CancelToken()
        self._push(self.now + interval, token, callback, generation, interval)
        return token

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("seconds must be >= 0.")
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _seq, token, callback, generation, interval = heapq.heappop(
                self._queue
            )
            if token.cancelled:
                continue
            self.now = due
            if interval > 0:
                self._push(due + interval, token, callback, generation, interval)
            callback(generation)
        self.now = target
