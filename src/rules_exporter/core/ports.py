"""Port interfaces for adapters.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from rules_exporter.core.models import LogEntry


@runtime_checkable
class QueryBackendPort(Protocol):
    """Port for instant queries against a time-series backend.

    Examples: PrometheusHTTPBackend.
    """

    async def query(self, endpoint: str, expression: str) -> Any:
        """Run ``expression`` against ``endpoint`` and return the decoded JSON.

        Exactly one attempt is made, bounded by the adapter's timeout.

        Raises:
            QueryError: On transport failure, timeout, a non-2xx status
                or a body that is not JSON.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the adapter."""
        ...


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for log storage operations.

    Adapters implementing this protocol can store and retrieve log entries.
    Examples: RingBufferLogStorage.
    """

    def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...

    def read(
        self, since: float = 0, level: str | None = None
    ) -> Iterable[LogEntry]:
        """Read log entries since the given timestamp.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
                   Default 0 returns all entries.
            level: Optional level filter (e.g. "ERROR").

        Returns:
            Iterable of LogEntry objects, ordered by timestamp ascending.
        """
        ...
