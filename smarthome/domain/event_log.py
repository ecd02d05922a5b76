from __future__ import annotations
from collections import deque
from typing import Deque

from .events import Event

DEFAULT_CAPACITY = 300


class EventLog:
    """Append-only, capacity-bounded event sequence; the oldest entry is dropped on overflow."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._buf: Deque[Event] = deque(maxlen=capacity)
        self._total = 0

    @property
    def capacity(self) -> int:
        return self._buf.maxlen or 0

    @property
    def total_appended(self) -> int:
        """Monotonic append counter; doubles as a version for cached projections."""
        return self._total

    def append(self, event: Event) -> None:
        self._buf.append(event)
        self._total += 1

    def snapshot(self) -> tuple[Event, ...]:
        return tuple(self._buf)

    def __len__(self) -> int:
        return len(self._buf)
