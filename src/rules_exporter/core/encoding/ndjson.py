"""NDJSON encoder for the exporter's buffered log."""

import json
from collections.abc import Iterable
from dataclasses import asdict

from rules_exporter.core.models import LogEntry

CONTENT_TYPE = "application/x-ndjson"


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries as one compact JSON object per line.

    Attribute values that are not JSON types (e.g. an exception object
    passed through ``extra``) are stringified rather than failing the
    whole response.

    Returns:
        NDJSON text terminated by a newline, or an empty string.
    """
    return "".join(
        json.dumps(asdict(entry), separators=(",", ":"), default=str) + "\n"
        for entry in entries
    )
