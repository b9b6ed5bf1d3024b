"""Thread-safe incrementing counters."""

from __future__ import annotations

import queue
import threading


class Counter:
    """An integer counter safe to share between threads."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def get_and_increment(self) -> int:
        """Return the current value, then increment it."""
        with self._lock:
            value = self._value
            self._value += 1
            return value

    def get(self) -> int:
        """Return the current value."""
        with self._lock:
            return self._value

    def reset(self) -> None:
        """Set the counter back to zero."""
        with self._lock:
            self._value = 0


class ChCounter:
    """A counter whose successive values are published on a queue."""

    def __init__(self, capacity: int = 100) -> None:
        self._value = 0
        self._lock = threading.Lock()
        self.outputs: queue.Queue[int] = queue.Queue(maxsize=capacity)

    def increment(self) -> None:
        """Increment the counter and publish the new value to ``outputs``."""
        with self._lock:
            self._value += 1
            self.outputs.put(self._value)