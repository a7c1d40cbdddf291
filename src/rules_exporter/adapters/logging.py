"""Python logging handler that captures exporter logs into a LogStoragePort.

Installed on the ``rules_exporter`` logger at startup so that rule
failures and skipped rows recorded during scrapes can be read back from
``GET /logs``.
"""

import logging
import traceback

from rules_exporter.core.logs import normalize_level
from rules_exporter.core.models import LogEntry
from rules_exporter.core.ports import LogStoragePort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class LogStorageHandler(logging.Handler):
    """Logging handler that writes log records to a LogStoragePort.

    Example:
        ```python
        storage = RingBufferLogStorage(max_size=1000)
        logging.getLogger("rules_exporter").addHandler(LogStorageHandler(storage))
        ```
    """

    def __init__(self, storage: LogStoragePort, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._storage = storage

    def emit(self, record: logging.LogRecord) -> None:
        """Convert ``record`` to a LogEntry and write it to storage."""
        try:
            attributes: dict[str, str | int | float | bool] = {
                "logger": record.name,
                "module": record.module,
                "funcName": record.funcName or "",
                "lineno": record.lineno,
                "pathname": record.pathname,
            }

            # Extra fields passed via logging(..., extra={...})
            for key, value in record.__dict__.items():
                if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(
                    value, (str, int, float, bool)
                ):
                    attributes[key] = value

            if record.exc_info:
                exc_type, exc_value, exc_tb = record.exc_info
                if exc_type is not None:
                    attributes["exc_type"] = exc_type.__name__
                if exc_value is not None:
                    attributes["exc_message"] = str(exc_value)
                if exc_tb is not None:
                    attributes["exc_traceback"] = "".join(
                        traceback.format_exception(exc_type, exc_value, exc_tb)
                    )

            entry = LogEntry(
                timestamp=record.created,
                level=normalize_level(record.levelname),
                message=record.getMessage(),
                attributes=attributes,
            )
            self._storage.write(entry)
        except Exception:
            self.handleError(record)


def install_log_capture(
    storage: LogStoragePort, logger_name: str = "rules_exporter"
) -> LogStorageHandler:
    """Attach a LogStorageHandler for ``storage`` to ``logger_name``."""
    handler = LogStorageHandler(storage)
    logging.getLogger(logger_name).addHandler(handler)
    return handler
