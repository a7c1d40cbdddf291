"""Tests for port interfaces and the adapters that implement them."""

import httpx
import pytest

from rules_exporter.adapters.backend import PrometheusHTTPBackend
from rules_exporter.adapters.storage import RingBufferLogStorage
from rules_exporter.core.ports import LogStoragePort, QueryBackendPort
from tests.fakes import FakeBackend


class TestQueryBackendPort:
    """Tests for QueryBackendPort protocol."""

    @pytest.mark.core
    def test_protocol_has_query_method(self) -> None:
        assert hasattr(QueryBackendPort, "query")

    @pytest.mark.core
    def test_fake_backend_satisfies_protocol(self) -> None:
        assert isinstance(FakeBackend(), QueryBackendPort)

    @pytest.mark.backend
    def test_http_backend_satisfies_protocol(self) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200))
        )
        assert isinstance(PrometheusHTTPBackend(client=client), QueryBackendPort)

    @pytest.mark.core
    def test_object_without_query_is_rejected(self) -> None:
        class NotABackend:
            def fetch(self, url: str) -> None:
                pass

        assert not isinstance(NotABackend(), QueryBackendPort)


class TestLogStoragePort:
    """Tests for LogStoragePort protocol."""

    @pytest.mark.core
    def test_protocol_has_write_and_read(self) -> None:
        assert hasattr(LogStoragePort, "write")
        assert hasattr(LogStoragePort, "read")

    @pytest.mark.storage
    def test_ring_buffer_satisfies_protocol(self) -> None:
        storage: LogStoragePort = RingBufferLogStorage(max_size=1)
        assert isinstance(storage, LogStoragePort)
