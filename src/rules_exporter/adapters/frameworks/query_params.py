"""Shared query parameter parsing utilities for framework adapters."""

import math

from rules_exporter.core.logs import VALID_LEVELS, normalize_level


def _parse_target_param(params: dict[str, list[str]]) -> str | None:
    """Return the first non-blank ``target`` value, or None if missing."""
    for value in params.get("target", []):
        if value.strip():
            return value
    return None


def _parse_since_param(params: dict[str, list[str]]) -> float:
    """Parse and validate the 'since' query parameter.

    Returns:
        Timestamp as float, defaulting to 0.0 if invalid or missing.
        Negative, NaN and infinite values also yield 0.0.
    """
    try:
        value = float(params.get("since", ["0"])[0])
    except ValueError:
        return 0.0
    if value < 0 or not math.isfinite(value):
        return 0.0
    return value


def _parse_level_param(params: dict[str, list[str]]) -> str | None:
    """Parse the 'level' query parameter.

    Returns:
        Normalized level (e.g. "WARNING" becomes "WARN") or None if
        invalid or missing.
    """
    values = params.get("level", [])
    if not values or not values[0]:
        return None
    level = normalize_level(values[0])
    return level if level in VALID_LEVELS else None
