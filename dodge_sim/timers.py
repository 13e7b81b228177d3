from __future__ import annotations

from typing import Callable


class IntervalTimer:
    """Fixed-interval timer driven by elapsed time handed in by the host loop.

    Nothing runs on its own thread; ``advance`` fires the callback once per
    whole interval that has elapsed since ``start``.
    """

    def __init__(self, interval_ms: float, callback: Callable[[], object]) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        self.interval_ms = float(interval_ms)
        self.callback = callback
        self.running = False
        self.elapsed_ms = 0.0
        self.fired = 0

    def start(self) -> None:
        self.running = True
        self.elapsed_ms = 0.0

    def stop(self) -> None:
        self.running = False

    def advance(self, elapsed_ms: float) -> float:
        """Consume elapsed time and return whatever was left unused.

        Time is left over only when the timer is stopped, either beforehand or
        by its own callback, so the caller can hand it to the next timer.
        """
        if not self.running:
            return elapsed_ms

        self.elapsed_ms += elapsed_ms
        while self.running and self.elapsed_ms >= self.interval_ms:
            self.elapsed_ms -= self.interval_ms
            self.fired += 1
            self.callback()

        if self.running:
            return 0.0
        leftover = self.elapsed_ms
        self.elapsed_ms = 0.0
        return leftover
