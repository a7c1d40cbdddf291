"""Rule catalog: the read-only target -> (endpoint, rules) mapping.

The catalog file follows the layout of the original exporter:

.. code-block:: yaml

    targets:
      node_rules:
        endpoint: http://prometheus:9090
        rules:
          - record: node_up
            expr: up{job="node"}

Any problem with the file raises ConfigError, which the CLI treats as fatal.
"""

import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any
from urllib.parse import urlsplit

import yaml

from rules_exporter.core.errors import ConfigError, NotFoundError
from rules_exporter.core.models import Rule, Target

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class Catalog:
    """Immutable mapping of target name to Target.

    Safe for any number of concurrent readers: nothing mutates it after
    construction.
    """

    def __init__(self, targets: Mapping[str, Target]) -> None:
        self._targets: Mapping[str, Target] = MappingProxyType(dict(targets))

    def resolve(self, name: str) -> Target:
        """Return the target registered under ``name``.

        Raises:
            NotFoundError: If no such target exists.
        """
        try:
            return self._targets[name]
        except KeyError:
            raise NotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _require_str(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{where}: expected a non-empty string")
    return value


def _parse_endpoint(value: Any, where: str) -> str:
    endpoint = _require_str(value, where).strip()
    # urlsplit rejects a broken IPv6 host; .port rejects a bad port.
    try:
        parts = urlsplit(endpoint)
        _ = parts.port
    except ValueError as e:
        raise ConfigError(f"{where}: invalid URL {endpoint!r}: {e}") from None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigError(f"{where}: not an http(s) URL: {endpoint!r}")
    return endpoint.rstrip("/")


def _parse_rule(raw: Any, where: str) -> Rule:
    fields = _require_mapping(raw, where)
    name = _require_str(fields.get("record"), f"{where}.record")
    if not METRIC_NAME_RE.match(name):
        raise ConfigError(f"{where}.record: invalid metric name {name!r}")
    expression = _require_str(fields.get("expr"), f"{where}.expr")
    return Rule(name=name, expression=expression)


def _parse_target(name: str, raw: Any) -> Target:
    where = f"targets.{name}"
    fields = _require_mapping(raw, where)
    endpoint = _parse_endpoint(fields.get("endpoint"), f"{where}.endpoint")

    raw_rules = fields.get("rules")
    if not isinstance(raw_rules, list):
        raise ConfigError(f"{where}.rules: expected a list")

    rules: list[Rule] = []
    seen: set[str] = set()
    for index, raw_rule in enumerate(raw_rules):
        rule = _parse_rule(raw_rule, f"{where}.rules[{index}]")
        if rule.name in seen:
            raise ConfigError(f"{where}: duplicate record {rule.name!r}")
        seen.add(rule.name)
        rules.append(rule)

    return Target(name=name, endpoint=endpoint, rules=tuple(rules))


def parse_catalog(document: Any) -> Catalog:
    """Build a Catalog from an already-decoded configuration document.

    Raises:
        ConfigError: If the document does not describe a valid catalog.
    """
    root = _require_mapping(document, "config")
    raw_targets = root.get("targets")
    if raw_targets is None:
        raise ConfigError("config: missing 'targets' section")
    targets = _require_mapping(raw_targets, "targets")

    parsed: dict[str, Target] = {}
    for name, raw in targets.items():
        target_name = _require_str(name, "targets key")
        parsed[target_name] = _parse_target(target_name, raw)
    return Catalog(parsed)


def load_catalog(path: str | Path) -> Catalog:
    """Read and validate a YAML (or JSON) catalog file.

    Raises:
        ConfigError: If the file is unreadable, malformed or invalid.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse config file {path}: {e}") from e

    return parse_catalog(document)
