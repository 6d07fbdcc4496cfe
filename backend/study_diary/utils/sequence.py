"""Thread-safe id sequence for the in-memory store."""

from __future__ import annotations

import threading


class IdentitySequence:
    """Strictly increasing integer ids starting at `start`.

    Every call to `next()` hands out a distinct value exactly once, even
    under concurrent callers.
    """

    def __init__(self, start: int = 1):
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
        return value

    def last(self) -> int:
        """Return the most recently issued id, or `start - 1` if none."""
        with self._lock:
            return self._next - 1
