"""Shared test fixtures for all test modules."""

from collections.abc import Callable

import httpx
import pytest

from rules_exporter.core.catalog import Catalog
from rules_exporter.core.models import Rule, Target
from rules_exporter.core.registry import MetricRegistry
from tests.fakes import FakeBackend, vector


class FakeClock:
    """Manually advanced monotonic clock for cache tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock that only moves when told to."""
    return FakeClock()


@pytest.fixture
def registry() -> MetricRegistry:
    """Provide an empty metric registry."""
    return MetricRegistry()


@pytest.fixture
def two_rule_target() -> Target:
    """A target with two rules against one endpoint."""
    return Target(
        name="node",
        endpoint="http://prometheus:9090",
        rules=(
            Rule(name="rule_a", expression="up"),
            Rule(name="rule_b", expression="node_load1"),
        ),
    )


@pytest.fixture
def catalog(two_rule_target: Target) -> Catalog:
    """Catalog holding the two-rule target."""
    return Catalog({two_rule_target.name: two_rule_target})


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Backend answering both rules of the two-rule target."""
    return FakeBackend(
        {
            "up": vector(({"instance": "a:9100"}, "1")),
            "node_load1": vector(({"instance": "a:9100"}, "0.75")),
        }
    )


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client() -> Callable[..., httpx.AsyncClient]:
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(context)
            async with asgi_test_client(app) as client:
                response = await client.get("/probe?target=node")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
