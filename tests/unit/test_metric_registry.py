"""Unit tests for MetricRegistry."""

import threading

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rules_exporter.core.errors import SchemaMismatchError
from rules_exporter.core.models import MetricSeries, QuerySample
from rules_exporter.core.registry import MetricRegistry

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


def sample(value: float, **labels: str) -> QuerySample:
    return QuerySample(labels=labels, value=value)


class TestMetricRegistryObserve:
    """Tests for MetricRegistry.observe()."""

    def test_first_observation_creates_descriptor(
        self, registry: MetricRegistry
    ) -> None:
        """The first sample's label names become the descriptor."""
        descriptor = registry.observe(
            "node_up", sample(1.0, job="node", instance="a"), "help text"
        )

        assert descriptor.name == "node_up"
        assert descriptor.label_names == ("instance", "job")
        assert descriptor.documentation == "help text"
        assert registry.descriptor("node_up") == descriptor

    def test_same_schema_adds_series(self, registry: MetricRegistry) -> None:
        """A new label value combination creates another series."""
        registry.observe("node_up", sample(1.0, instance="a"))
        registry.observe("node_up", sample(0.0, instance="b"))

        (family,) = registry.snapshot()

        assert set(family.series) == {
            MetricSeries(label_values=("a",), value=1.0),
            MetricSeries(label_values=("b",), value=0.0),
        }

    def test_repeat_observation_is_last_write_wins(
        self, registry: MetricRegistry
    ) -> None:
        """Observing the same labels twice keeps only the latest value."""
        registry.observe("load", sample(1.5, instance="a"))
        registry.observe("load", sample(2.5, instance="a"))

        (family,) = registry.snapshot()

        assert family.series == (MetricSeries(label_values=("a",), value=2.5),)

    def test_different_label_names_raise_schema_mismatch(
        self, registry: MetricRegistry
    ) -> None:
        """A sample with another label-name set is rejected."""
        registry.observe("load", sample(1.0, instance="a"))

        with pytest.raises(SchemaMismatchError, match="load") as excinfo:
            registry.observe("load", sample(2.0, instance="a", job="node"))

        assert excinfo.value.expected == ("instance",)
        assert excinfo.value.actual == ("instance", "job")

    def test_schema_mismatch_leaves_existing_series_unchanged(
        self, registry: MetricRegistry
    ) -> None:
        """Rejected samples do not touch the registered metric."""
        registry.observe("load", sample(1.0, instance="a"), "original help")
        before = registry.snapshot()

        with pytest.raises(SchemaMismatchError):
            registry.observe("load", sample(9.0), "other help")

        assert registry.snapshot() == before
        assert registry.descriptor("load").documentation == "original help"

    def test_descriptor_is_never_replaced(self, registry: MetricRegistry) -> None:
        """Later observations do not change the descriptor's help text."""
        first = registry.observe("load", sample(1.0, instance="a"), "first")
        second = registry.observe("load", sample(2.0, instance="b"), "second")

        assert second is first

    def test_unlabeled_metric(self, registry: MetricRegistry) -> None:
        """A sample without labels registers an unlabeled metric."""
        registry.observe("scalar", sample(3.0))

        (family,) = registry.snapshot()

        assert family.descriptor.label_names == ()
        assert family.series == (MetricSeries(label_values=(), value=3.0),)


class TestMetricRegistrySnapshot:
    """Tests for MetricRegistry.snapshot()."""

    def test_empty_registry(self, registry: MetricRegistry) -> None:
        assert registry.snapshot() == ()

    def test_default_order_is_creation_order(self, registry: MetricRegistry) -> None:
        registry.observe("b_metric", sample(1.0))
        registry.observe("a_metric", sample(1.0))

        names = [f.descriptor.name for f in registry.snapshot()]

        assert names == ["b_metric", "a_metric"]

    def test_names_select_and_order_families(self, registry: MetricRegistry) -> None:
        """Only requested metrics are returned, in the requested order."""
        for name in ("one", "two", "three"):
            registry.observe(name, sample(1.0))

        names = [f.descriptor.name for f in registry.snapshot(["three", "one"])]

        assert names == ["three", "one"]

    def test_unknown_and_repeated_names_are_skipped(
        self, registry: MetricRegistry
    ) -> None:
        registry.observe("one", sample(1.0))

        families = registry.snapshot(["ghost", "one", "one"])

        assert [f.descriptor.name for f in families] == ["one"]

    def test_snapshot_is_a_copy(self, registry: MetricRegistry) -> None:
        """Later observations do not alter an earlier snapshot."""
        registry.observe("load", sample(1.0, instance="a"))
        snapshot = registry.snapshot()

        registry.observe("load", sample(5.0, instance="a"))
        registry.observe("load", sample(6.0, instance="b"))

        assert snapshot[0].series == (MetricSeries(label_values=("a",), value=1.0),)

    def test_series_labels_follow_descriptor(self, registry: MetricRegistry) -> None:
        registry.observe("load", sample(1.0, job="node", instance="a"))

        (family,) = registry.snapshot()

        assert family.series[0].labels(family.descriptor) == {
            "instance": "a",
            "job": "node",
        }


class TestMetricRegistryPropertyBased:
    """Property-based tests for MetricRegistry."""

    @given(
        values=st.lists(
            st.floats(allow_nan=False), min_size=1, max_size=20
        ),
        label=st.text(max_size=20),
    )
    def test_last_observation_wins(self, values: list[float], label: str) -> None:
        """Whatever the sequence of values, the series holds the last one."""
        registry = MetricRegistry()

        for value in values:
            registry.observe("m", sample(value, key=label))

        (family,) = registry.snapshot()
        assert family.series == (
            MetricSeries(label_values=(label,), value=values[-1]),
        )

    @given(
        first=st.frozensets(st.sampled_from("abcde"), max_size=5),
        second=st.frozensets(st.sampled_from("abcde"), max_size=5),
    )
    def test_first_label_set_fixes_schema(
        self, first: frozenset[str], second: frozenset[str]
    ) -> None:
        """A second label set is accepted if and only if it equals the first."""
        registry = MetricRegistry()
        registry.observe("m", sample(1.0, **{k: "x" for k in first}))

        if first == second:
            registry.observe("m", sample(2.0, **{k: "x" for k in second}))
        else:
            with pytest.raises(SchemaMismatchError):
                registry.observe("m", sample(2.0, **{k: "x" for k in second}))

        assert registry.descriptor("m").label_names == tuple(sorted(first))


class TestMetricRegistryConcurrency:
    """Tests for concurrent observe() calls."""

    def test_parallel_observations_lose_no_series(self) -> None:
        """Threads observing disjoint series all end up in the snapshot."""
        registry = MetricRegistry()

        def worker(worker_id: int) -> None:
            for i in range(100):
                registry.observe(
                    "shared", sample(float(i), worker=str(worker_id), n=str(i))
                )

        threads = [threading.Thread(target=worker, args=(w,)) for w in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        (family,) = registry.snapshot()
        assert len(family.series) == 8 * 100
        assert len(registry) == 1
