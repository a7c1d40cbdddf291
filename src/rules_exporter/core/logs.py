"""Log helpers shared by the core and the adapters."""

import logging

logger = logging.getLogger("rules_exporter")

# Python level names mapped to the names used in LogEntry.level
_LEVEL_ALIASES = {"WARNING": "WARN", "CRITICAL": "ERROR", "FATAL": "ERROR"}

VALID_LEVELS = frozenset({"DEBUG", "INFO", "WARN", "ERROR"})


def normalize_level(level: str) -> str:
    """Map a logging level name to a LogEntry level (DEBUG/INFO/WARN/ERROR)."""
    upper = level.upper()
    return _LEVEL_ALIASES.get(upper, upper)


def log_exception(message: str, **attributes: str | int | float | bool) -> None:
    """Log ``message`` at ERROR with the active exception's traceback.

    Must be called from inside an ``except`` block.
    """
    logger.exception(message, extra=attributes)
