"""Query evaluation: backend call, envelope decoding and result caching.

The backend answers an instant query with an envelope such as::

    {"status": "success",
     "data": {"resultType": "vector",
              "result": [{"metric": {"job": "node"}, "value": [1700000000, "1"]}]}}

Decoding is strict at the envelope level (EnvelopeError fails the rule)
and lenient at the row level: a row that cannot be converted raises
RowParseError internally, is logged and skipped, and the remaining rows are
still returned. Only successful evaluations are cached.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from rules_exporter.core.cache import TTLCache
from rules_exporter.core.errors import EnvelopeError, RowParseError
from rules_exporter.core.models import QuerySample
from rules_exporter.core.ports import QueryBackendPort

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 15.0

# Dropped from every row: the exposed name is the rule's record name.
METRIC_NAME_LABEL = "__name__"

CacheKey = tuple[str, str]


def parse_value(raw: Any) -> float:
    """Convert a backend's string-encoded number to float.

    Accepts everything ``float()`` accepts, including ``NaN`` and ``+Inf``.
    That is looser than Prometheus' own parser: surrounding whitespace
    and digit-group underscores (``" 12.5 "``, ``"1_0"``) are accepted.

    Raises:
        RowParseError: If ``raw`` is not a string or not a number.
    """
    if not isinstance(raw, str):
        raise RowParseError(f"value must be a string, got {type(raw).__name__}")
    try:
        return float(raw)
    except ValueError:
        raise RowParseError(f"invalid numeric value {raw!r}") from None


def _decode_pair(pair: Any) -> float:
    if not isinstance(pair, Sequence) or isinstance(pair, str) or len(pair) != 2:
        raise RowParseError("value must be a [timestamp, number] pair")
    return parse_value(pair[1])


def decode_row(row: Any) -> QuerySample:
    """Decode one element of a vector result.

    Raises:
        RowParseError: If the row is malformed or its value is not a number.
    """
    if not isinstance(row, Mapping):
        raise RowParseError("result row must be an object")
    metric = row.get("metric", {})
    if not isinstance(metric, Mapping):
        raise RowParseError("'metric' must be an object")

    labels: dict[str, str] = {}
    for name, value in metric.items():
        if name == METRIC_NAME_LABEL:
            continue
        if not isinstance(value, str):
            raise RowParseError(f"label {name!r} has non-string value")
        labels[name] = value

    return QuerySample(labels=labels, value=_decode_pair(row.get("value")))


def _envelope_data(document: Any) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        raise EnvelopeError("response is not a JSON object")
    if document.get("status") == "error":
        error_type = document.get("errorType", "error")
        message = document.get("error", "unknown error")
        raise EnvelopeError(f"{error_type}: {message}")
    data = document.get("data")
    if not isinstance(data, Mapping):
        raise EnvelopeError("response has no 'data' object")
    return data


def decode_envelope(document: Any) -> list[QuerySample]:
    """Decode a query response into samples, skipping unusable rows.

    Vector results yield one sample per row; a scalar result yields one
    unlabeled sample.

    Raises:
        EnvelopeError: If the envelope itself is malformed, reports an
            error, or carries an unsupported result type.
    """
    data = _envelope_data(document)
    result_type = data.get("resultType", "vector")
    result = data.get("result")

    if result_type == "scalar":
        try:
            return [QuerySample(labels={}, value=_decode_pair(result))]
        except RowParseError as e:
            logger.warning("Skipping scalar result: %s", e)
            return []

    if result_type != "vector":
        raise EnvelopeError(f"unsupported result type {result_type!r}")
    if not isinstance(result, list):
        raise EnvelopeError("'data.result' is not a list")

    samples: list[QuerySample] = []
    for index, row in enumerate(result):
        try:
            samples.append(decode_row(row))
        except RowParseError as e:
            logger.warning("Skipping result row %d: %s", index, e)
    return samples


class QueryEvaluator:
    """Evaluates rule expressions, memoizing successful results.

    Args:
        backend: Adapter that performs the HTTP round trip.
        cache: Optional cache keyed by ``(endpoint, expression)``. When
            None, every call reaches the backend.
        cache_ttl: Seconds a successful result stays fresh.
    """

    def __init__(
        self,
        backend: QueryBackendPort,
        cache: TTLCache[CacheKey, tuple[QuerySample, ...]] | None = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
    ) -> None:
        self.backend = backend
        self.cache = cache
        self.cache_ttl = cache_ttl

    async def evaluate(
        self, endpoint: str, expression: str
    ) -> tuple[QuerySample, ...]:
        """Return the samples produced by ``expression`` at ``endpoint``.

        Raises:
            QueryError: If the backend call fails or its envelope is
                malformed. Failures are never cached.
        """
        key = (endpoint, expression)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s at %s", expression, endpoint)
                return cached

        document = await self.backend.query(endpoint, expression)
        samples = tuple(decode_envelope(document))

        if self.cache is not None and self.cache_ttl > 0:
            self.cache.set(key, samples, self.cache_ttl)
        return samples

    async def aclose(self) -> None:
        await self.backend.aclose()
