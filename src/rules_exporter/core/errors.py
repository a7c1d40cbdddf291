"""Exception taxonomy for the rules exporter.

Only ConfigError is fatal to the process. Every other error is raised
inside a single scrape and contained there: the HTTP layer maps
BadRequestError and NotFoundError to status codes, while QueryError,
RowParseError and SchemaMismatchError are logged and the offending rule,
row or observation is skipped.
"""


class RulesExporterError(Exception):
    """Base class for all rules exporter errors."""


class ConfigError(RulesExporterError):
    """The rule catalog could not be loaded or failed validation."""


class BadRequestError(RulesExporterError):
    """A probe request is missing a required parameter."""


class NotFoundError(RulesExporterError):
    """A probe request names a target the catalog does not know."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Target not found: {target}")
        self.target = target


class QueryError(RulesExporterError):
    """The backend was unreachable or its response could not be used."""


class EnvelopeError(QueryError):
    """The backend responded, but the result envelope is malformed."""


class RowParseError(RulesExporterError):
    """A single result row could not be converted into a sample."""


class SchemaMismatchError(RulesExporterError):
    """An observation's label names differ from the metric's descriptor."""

    def __init__(
        self,
        name: str,
        expected: tuple[str, ...],
        actual: tuple[str, ...],
    ) -> None:
        super().__init__(
            f"Label names for metric {name!r} changed: "
            f"expected {list(expected)}, got {list(actual)}"
        )
        self.name = name
        self.expected = expected
        self.actual = actual
