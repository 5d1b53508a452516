import threading
import time
from typing import Callable


class RateLimiter:
    """
    Fixed-window request budget shared by every mod of one tracking service.

    The counter resets once ``window_seconds`` have passed since the window
    opened; the reset happens lazily on the next ``try_acquire``.
    """

    def __init__(
        self,
        max_per_window: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_per_window = max_per_window
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._window_start = clock()

    def _roll_window(self, now: float) -> None:
        if now - self._window_start >= self.window_seconds:
            self._count = 0
            self._window_start = now

    def try_acquire(self) -> bool:
        """Take one request slot. Returns False when the budget is spent."""
        with self._lock:
            self._roll_window(self._clock())
            if self._count >= self.max_per_window:
                return False
            self._count += 1
            return True

    @property
    def remaining(self) -> int:
        with self._lock:
            self._roll_window(self._clock())
            return max(self.max_per_window - self._count, 0)

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._window_start = self._clock()
