"""Scrape pipeline: resolve a target, evaluate its rules, expose the result.

One ExporterContext is built at startup and shared by every request, so
series observed by earlier scrapes keep their last value in later ones.

Within a scrape, rules run sequentially in catalog order. A rule whose
query fails is logged and skipped; observations already applied by earlier
rules are kept even if the scrape is cancelled part-way.
"""

import asyncio
import logging
from dataclasses import dataclass

from rules_exporter.core.cache import TTLCache
from rules_exporter.core.catalog import Catalog
from rules_exporter.core.encoding.prometheus import render
from rules_exporter.core.errors import BadRequestError, QueryError, SchemaMismatchError
from rules_exporter.core.evaluator import QueryEvaluator
from rules_exporter.core.models import Rule, Target
from rules_exporter.core.registry import MetricRegistry

logger = logging.getLogger(__name__)


def rule_documentation(rule: Rule) -> str:
    """HELP text for the metric a rule produces."""
    return f"Value of Prometheus query: {rule.expression}"


@dataclass
class ProbeResult:
    """Outcome counters of one scrape."""

    target: str
    rules_ok: int = 0
    rules_failed: int = 0
    rows_observed: int = 0
    rows_rejected: int = 0


class ExporterContext:
    """Process-wide state shared by every probe request.

    Args:
        catalog: Read-only target catalog.
        evaluator: Evaluator used for every rule query.
        registry: Registry holding every metric ever observed.
    """

    def __init__(
        self,
        catalog: Catalog,
        evaluator: QueryEvaluator,
        registry: MetricRegistry | None = None,
    ) -> None:
        self.catalog = catalog
        self.evaluator = evaluator
        self.registry = registry if registry is not None else MetricRegistry()

    def resolve(self, target_name: str | None) -> Target:
        """Look up a probe target.

        Raises:
            BadRequestError: If no target name was given.
            NotFoundError: If the catalog has no such target.
        """
        if not target_name:
            raise BadRequestError("Missing target parameter")
        return self.catalog.resolve(target_name)

    async def _evaluate_rule(
        self, target: Target, rule: Rule, result: ProbeResult
    ) -> None:
        try:
            samples = await self.evaluator.evaluate(target.endpoint, rule.expression)
        except QueryError as e:
            result.rules_failed += 1
            logger.warning(
                "Error querying Prometheus for rule %s: %s",
                rule.name,
                e,
                extra={
                    "rule": rule.name,
                    "target": target.name,
                    "endpoint": target.endpoint,
                },
            )
            return

        result.rules_ok += 1
        documentation = rule_documentation(rule)
        for sample in samples:
            try:
                self.registry.observe(rule.name, sample, documentation)
            except SchemaMismatchError as e:
                result.rows_rejected += 1
                logger.warning(
                    "Dropping observation for rule %s: %s",
                    rule.name,
                    e,
                    extra={"rule": rule.name, "target": target.name},
                )
            else:
                result.rows_observed += 1

    async def run(self, target: Target) -> ProbeResult:
        """Evaluate every rule of ``target`` and observe the results."""
        result = ProbeResult(target=target.name)
        for rule in target.rules:
            await self._evaluate_rule(target, rule, result)
        logger.debug(
            "Probed %s: %d rules ok, %d failed, %d rows observed, %d rejected",
            target.name,
            result.rules_ok,
            result.rules_failed,
            result.rows_observed,
            result.rows_rejected,
        )
        return result

    def render(self, target: Target) -> bytes:
        """Expose the current series of ``target``'s rules."""
        return render(self.registry.snapshot(rule.name for rule in target.rules))

    async def probe(self, target_name: str | None) -> bytes:
        """Handle one scrape end to end and return the exposition body.

        Raises:
            BadRequestError: If ``target_name`` is empty or None.
            NotFoundError: If the target is unknown. The registry is not
                touched in either case.
        """
        target = self.resolve(target_name)
        await self.run(target)
        return self.render(target)

    async def aclose(self) -> None:
        """Close the backend client. Called once at shutdown."""
        await self.evaluator.aclose()


async def sweep_cache(cache: TTLCache, interval: float) -> None:
    """Purge expired cache entries every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        removed = cache.cleanup()
        if removed:
            logger.debug("Removed %d expired cache entries", removed)
