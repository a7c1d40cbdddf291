"""Prometheus text exposition format encoder (version 0.0.4)."""

import math
from collections.abc import Iterable

from rules_exporter.core.models import MetricFamily

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def escape_help(text: str) -> str:
    """Escape HELP text: backslash and newline."""
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def escape_label_value(value: str) -> str:
    """Escape a label value: backslash, double quote and newline."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_value(value: float) -> str:
    """Format a sample value the way Prometheus parses it."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(float(value))


def _format_labels(names: tuple[str, ...], values: tuple[str, ...]) -> str:
    if not names:
        return ""
    pairs = ",".join(
        f'{name}="{escape_label_value(value)}"'
        for name, value in zip(names, values, strict=True)
    )
    return "{" + pairs + "}"


def encode_families(families: Iterable[MetricFamily]) -> str:
    """Encode metric families to Prometheus text format.

    Args:
        families: Snapshot of the registry.

    Returns:
        Exposition text. Families without series are omitted; an empty
        snapshot encodes to an empty string.
    """
    lines: list[str] = []
    for family in families:
        if not family.series:
            continue
        descriptor = family.descriptor
        name = descriptor.name
        if descriptor.documentation:
            lines.append(f"# HELP {name} {escape_help(descriptor.documentation)}")
        lines.append(f"# TYPE {name} gauge")
        for series in family.series:
            labels = _format_labels(descriptor.label_names, series.label_values)
            lines.append(f"{name}{labels} {format_value(series.value)}")

    if not lines:
        return ""

    return "\n".join(lines) + "\n"


def render(families: Iterable[MetricFamily]) -> bytes:
    """Encode a registry snapshot to the UTF-8 exposition byte stream."""
    return encode_families(families).encode("utf-8")
