from __future__ import annotations

from collections import deque

from circuitsim.schemas.simulation import LogEntry


class LogRing:
    """Fixed-capacity event log; the oldest entry is evicted first."""

    def __init__(self, capacity: int = 50):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
