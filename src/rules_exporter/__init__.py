"""rules_exporter - expose Prometheus query results as dynamically shaped gauges.

Each configured target groups rules (``record`` name plus query ``expr``)
against one backend endpoint. ``GET /probe?target=<name>`` evaluates the
target's rules and returns the results in Prometheus text format.
"""

from rules_exporter.adapters.backend import PrometheusHTTPBackend
from rules_exporter.adapters.frameworks.asgi import create_asgi_app
from rules_exporter.adapters.logging import LogStorageHandler, install_log_capture
from rules_exporter.adapters.storage import RingBufferLogStorage
from rules_exporter.core.cache import TTLCache
from rules_exporter.core.catalog import Catalog, load_catalog, parse_catalog
from rules_exporter.core.encoding.prometheus import render
from rules_exporter.core.errors import (
    BadRequestError,
    ConfigError,
    EnvelopeError,
    NotFoundError,
    QueryError,
    RowParseError,
    RulesExporterError,
    SchemaMismatchError,
)
from rules_exporter.core.evaluator import QueryEvaluator, decode_envelope
from rules_exporter.core.models import (
    LogEntry,
    MetricDescriptor,
    MetricFamily,
    MetricSeries,
    QuerySample,
    Rule,
    Target,
)
from rules_exporter.core.pipeline import ExporterContext, ProbeResult
from rules_exporter.core.registry import MetricRegistry

__version__ = "0.1.0"

__all__ = [
    "BadRequestError",
    "Catalog",
    "ConfigError",
    "EnvelopeError",
    "ExporterContext",
    "LogEntry",
    "LogStorageHandler",
    "MetricDescriptor",
    "MetricFamily",
    "MetricRegistry",
    "MetricSeries",
    "NotFoundError",
    "ProbeResult",
    "PrometheusHTTPBackend",
    "QueryError",
    "QueryEvaluator",
    "QuerySample",
    "RingBufferLogStorage",
    "RowParseError",
    "Rule",
    "RulesExporterError",
    "SchemaMismatchError",
    "TTLCache",
    "Target",
    "create_asgi_app",
    "decode_envelope",
    "install_log_capture",
    "load_catalog",
    "parse_catalog",
    "render",
]
