"""Process-wide registry of dynamically shaped gauge metrics.

A metric is created lazily on its first observation, and the label names of
that observation become its descriptor for the rest of the process
lifetime. Descriptors are immutable and never replaced. Later observations
with a different label-name set are rejected with SchemaMismatchError.

Series are never evicted: a label combination that stops being reported
stays exposed at its last observed value.
"""

import logging
import threading
from collections.abc import Iterable

from rules_exporter.core.errors import SchemaMismatchError
from rules_exporter.core.models import (
    MetricDescriptor,
    MetricFamily,
    MetricSeries,
    QuerySample,
)

logger = logging.getLogger(__name__)


class _MetricState:
    """Mutable per-metric state, only touched while the registry lock is held."""

    __slots__ = ("descriptor", "series")

    def __init__(self, descriptor: MetricDescriptor) -> None:
        self.descriptor = descriptor
        self.series: dict[tuple[str, ...], float] = {}


class MetricRegistry:
    """Maps metric names to one descriptor and its series.

    A single lock serializes ``observe`` and ``snapshot``. Both only touch
    in-memory dictionaries, so backend queries for unrelated targets are
    never serialized behind it.
    """

    def __init__(self) -> None:
        self._metrics: dict[str, _MetricState] = {}
        self._lock = threading.Lock()

    def observe(
        self,
        name: str,
        sample: QuerySample,
        documentation: str = "",
    ) -> MetricDescriptor:
        """Record ``sample`` as the current value of its series under ``name``.

        Args:
            name: Metric name.
            sample: Label values and numeric value to record.
            documentation: HELP text, used only when the metric is created.

        Returns:
            The metric's descriptor.

        Raises:
            SchemaMismatchError: If the sample's label names differ from
                the descriptor's. Existing series are left unchanged.
        """
        label_names = sample.label_names
        with self._lock:
            state = self._metrics.get(name)
            if state is None:
                descriptor = MetricDescriptor(
                    name=name,
                    documentation=documentation,
                    label_names=label_names,
                )
                state = _MetricState(descriptor)
                self._metrics[name] = state
                logger.debug("Registered metric %s with labels %s", name, label_names)
            elif state.descriptor.label_names != label_names:
                raise SchemaMismatchError(
                    name, state.descriptor.label_names, label_names
                )
            key = tuple(sample.labels[label] for label in label_names)
            state.series[key] = sample.value
            return state.descriptor

    def descriptor(self, name: str) -> MetricDescriptor | None:
        """Return the descriptor for ``name``, or None if never observed."""
        with self._lock:
            state = self._metrics.get(name)
            return state.descriptor if state is not None else None

    def snapshot(
        self, names: Iterable[str] | None = None
    ) -> tuple[MetricFamily, ...]:
        """Copy the current state of the registry.

        Args:
            names: Metric names to include, in output order. Unknown names
                and repeats are skipped. Defaults to every metric in
                creation order.

        Returns:
            One MetricFamily per included metric, taken atomically.
        """
        with self._lock:
            if names is None:
                wanted = list(self._metrics)
            else:
                wanted = list(dict.fromkeys(names))
            families = []
            for name in wanted:
                state = self._metrics.get(name)
                if state is None:
                    continue
                series = tuple(
                    MetricSeries(label_values=key, value=value)
                    for key, value in state.series.items()
                )
                families.append(
                    MetricFamily(descriptor=state.descriptor, series=series)
                )
        return tuple(families)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._metrics
