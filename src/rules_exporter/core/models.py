"""Core domain models for the rules exporter."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class Rule:
    """A named query whose result is exposed as one gauge metric.

    Attributes:
        name: Exposed metric name (the ``record`` field of the config).
        expression: Query text, opaque to the exporter.
    """

    name: str
    expression: str


@dataclass(frozen=True)
class Target:
    """A named group of rules evaluated against one backend endpoint.

    Attributes:
        name: Catalog key used by ``/probe?target=``.
        endpoint: Base URL of the query backend.
        rules: Rules in declaration order.
    """

    name: str
    endpoint: str
    rules: tuple[Rule, ...] = ()


@dataclass(frozen=True)
class QuerySample:
    """One result row of a query: label values plus a numeric value.

    The labels are copied into a read-only mapping, so a sample can be
    cached and shared between scrapes without aliasing.
    """

    labels: Mapping[str, str]
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def label_names(self) -> tuple[str, ...]:
        """Label names in sorted order."""
        return tuple(sorted(self.labels))


@dataclass(frozen=True)
class MetricDescriptor:
    """The fixed label schema of one exposed metric.

    Attributes:
        name: Metric name.
        documentation: HELP text.
        label_names: Sorted label names every series must carry.
    """

    name: str
    documentation: str
    label_names: tuple[str, ...]


@dataclass(frozen=True)
class MetricSeries:
    """One label value combination of a metric with its last value.

    Attributes:
        label_values: Values ordered like the descriptor's label names.
        value: Most recently observed value.
    """

    label_values: tuple[str, ...]
    value: float

    def labels(self, descriptor: MetricDescriptor) -> dict[str, str]:
        """Return the series labels keyed by the descriptor's label names."""
        return dict(zip(descriptor.label_names, self.label_values, strict=True))


@dataclass(frozen=True)
class MetricFamily:
    """A consistent point-in-time copy of one metric and all its series."""

    descriptor: MetricDescriptor
    series: tuple[MetricSeries, ...]


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, ERROR, DEBUG).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
