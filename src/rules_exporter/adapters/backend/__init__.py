"""Query backend adapters."""

from rules_exporter.adapters.backend.prometheus_http import (
    DEFAULT_QUERY_TIMEOUT,
    PrometheusHTTPBackend,
)

__all__ = ["DEFAULT_QUERY_TIMEOUT", "PrometheusHTTPBackend"]
