"""Ring buffer storage for the exporter's own log entries.

Provides bounded in-memory storage that automatically evicts oldest
entries when the buffer is full, so a long-running exporter keeps a
predictable memory footprint.
"""

import threading
from collections import deque

from rules_exporter.core.logs import normalize_level
from rules_exporter.core.models import LogEntry


class RingBufferLogStorage:
    """Ring buffer implementation of LogStoragePort.

    Writes come from logging handlers on any thread, reads from the HTTP
    layer; a lock keeps the deque consistent between them.

    Args:
        max_size: Maximum number of entries to store.
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def write(self, entry: LogEntry) -> None:
        """Write a log entry, evicting the oldest one if full."""
        with self._lock:
            self._buffer.append(entry)

    def read(self, since: float = 0, level: str | None = None) -> list[LogEntry]:
        """Read log entries since the given timestamp.

        Returns entries with timestamp > since (and matching ``level`` if
        given), ordered by timestamp ascending.
        """
        wanted = normalize_level(level) if level else None
        with self._lock:
            entries = list(self._buffer)
        filtered = [
            e
            for e in entries
            if e.timestamp > since and (wanted is None or e.level == wanted)
        ]
        return sorted(filtered, key=lambda e: e.timestamp)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
