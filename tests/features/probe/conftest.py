"""Step definitions for probe.feature."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from pytest_bdd import given, parsers, then, when

from rules_exporter.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from rules_exporter.core.catalog import Catalog
from rules_exporter.core.errors import QueryError
from rules_exporter.core.evaluator import QueryEvaluator
from rules_exporter.core.models import Rule, Target
from rules_exporter.core.pipeline import ExporterContext
from tests.fakes import FakeBackend, vector

ENDPOINT = "http://prometheus:9090"


@dataclass
class ProbeScenarioContext:
    """Shared state between steps in a probe scenario."""

    targets: dict[str, Target] = field(default_factory=dict)
    backend: FakeBackend = field(default_factory=FakeBackend)
    app: ASGIApp | None = None
    response: httpx.Response | None = None

    def get_app(self) -> ASGIApp:
        # Built on first request so every later request shares one registry.
        if self.app is None:
            context = ExporterContext(
                Catalog(self.targets), QueryEvaluator(self.backend)
            )
            self.app = create_asgi_app(context)
        return self.app


def run_async(coro: Any) -> Any:
    """Run a coroutine synchronously."""
    return asyncio.run(coro)


async def _get(app: ASGIApp, path: str) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        return await c.get(path)


def _labels(raw: str) -> dict[str, str]:
    pairs = (item.partition("=") for item in raw.split(",") if item)
    return {name: value for name, _, value in pairs}


@pytest.fixture
def ctx() -> ProbeScenarioContext:
    """Fresh scenario context for each test."""
    return ProbeScenarioContext()


# === Given ===
@given(parsers.parse('a target "{name}" with rules:'))
def step_target(
    ctx: ProbeScenarioContext, name: str, datatable: list[list[str]]
) -> None:
    header, *rows = datatable
    columns = [dict(zip(header, row, strict=True)) for row in rows]
    rules = tuple(Rule(name=c["record"], expression=c["expr"]) for c in columns)
    ctx.targets[name] = Target(name=name, endpoint=ENDPOINT, rules=rules)


@given(
    parsers.parse(
        'the backend answers "{expr}" with instance "{instance}" value "{value}"'
    )
)
def step_backend_answers(
    ctx: ProbeScenarioContext, expr: str, instance: str, value: str
) -> None:
    ctx.backend.responses[expr] = vector(({"instance": instance}, value))


@given(parsers.parse('the backend fails for "{expr}"'))
def step_backend_fails(ctx: ProbeScenarioContext, expr: str) -> None:
    ctx.backend.responses[expr] = QueryError("503 Service Unavailable")


# === When ===
@when(parsers.parse('"{path}" is requested'))
def step_request(ctx: ProbeScenarioContext, path: str) -> None:
    ctx.response = run_async(_get(ctx.get_app(), path))


@when(
    parsers.parse(
        'the backend starts answering "{expr}" with labels "{labels}" value "{value}"'
    )
)
def step_backend_relabels(
    ctx: ProbeScenarioContext, expr: str, labels: str, value: str
) -> None:
    ctx.backend.responses[expr] = vector((_labels(labels), value))


# === Then ===
@then(parsers.parse("the response status is {code:d}"))
def step_status(ctx: ProbeScenarioContext, code: int) -> None:
    assert ctx.response is not None
    assert ctx.response.status_code == code


@then(parsers.re(r"the body contains '(?P<text>.*)'$"))
def step_body_contains_single(ctx: ProbeScenarioContext, text: str) -> None:
    assert ctx.response is not None
    assert text in ctx.response.text


@then(parsers.re(r'the body contains "(?P<text>[^"]*)"$'))
def step_body_contains_double(ctx: ProbeScenarioContext, text: str) -> None:
    assert ctx.response is not None
    assert text in ctx.response.text


@then(parsers.re(r"the body does not contain '(?P<text>.*)'$"))
def step_body_lacks_single(ctx: ProbeScenarioContext, text: str) -> None:
    assert ctx.response is not None
    assert text not in ctx.response.text


@then(parsers.re(r'the body does not contain "(?P<text>[^"]*)"$'))
def step_body_lacks_double(ctx: ProbeScenarioContext, text: str) -> None:
    assert ctx.response is not None
    assert text not in ctx.response.text


@then("the backend was not queried")
def step_backend_idle(ctx: ProbeScenarioContext) -> None:
    assert ctx.backend.calls == []
