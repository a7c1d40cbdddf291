"""Command-line entry point: parse flags, load the catalog, serve HTTP.

Run with:
    python -m rules_exporter --config.file rules_exporter.yaml

Flags keep the names of the original exporter (``--web.listen-address``,
``--config.file``).
"""

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass

import uvicorn

from rules_exporter.adapters.backend import DEFAULT_QUERY_TIMEOUT, PrometheusHTTPBackend
from rules_exporter.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from rules_exporter.adapters.logging import install_log_capture
from rules_exporter.adapters.storage import RingBufferLogStorage
from rules_exporter.core.cache import TTLCache
from rules_exporter.core.catalog import load_catalog
from rules_exporter.core.errors import ConfigError
from rules_exporter.core.evaluator import DEFAULT_CACHE_TTL, QueryEvaluator
from rules_exporter.core.pipeline import ExporterContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExporterSettings:
    """Process configuration collected from command-line flags."""

    listen_address: str = "0.0.0.0:9401"
    config_file: str = "rules_exporter.yaml"
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_cleanup_interval: float = 60.0
    log_level: str = "INFO"
    log_buffer_size: int = 1000

    @property
    def host(self) -> str:
        host, _, _ = self.listen_address.rpartition(":")
        return host.strip("[]") or "0.0.0.0"

    @property
    def port(self) -> int:
        _, _, port = self.listen_address.rpartition(":")
        return int(port)


def _non_negative_float(raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {raw}")
    return value


def _positive_float(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {raw}")
    return value


def _listen_address(raw: str) -> str:
    _, sep, port = raw.rpartition(":")
    if not sep or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected host:port, got {raw!r}")
    return raw


def build_parser() -> argparse.ArgumentParser:
    defaults = ExporterSettings()
    parser = argparse.ArgumentParser(
        prog="rules-exporter",
        description="Expose Prometheus query results as gauges on /probe.",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        type=_listen_address,
        default=defaults.listen_address,
        help="Address to listen on for web interface and telemetry.",
    )
    parser.add_argument(
        "--config.file",
        dest="config_file",
        default=defaults.config_file,
        help="Path to configuration file.",
    )
    parser.add_argument(
        "--query.timeout",
        dest="query_timeout",
        type=_positive_float,
        default=defaults.query_timeout,
        help="Seconds allowed for each backend query.",
    )
    parser.add_argument(
        "--cache.ttl",
        dest="cache_ttl",
        type=_non_negative_float,
        default=defaults.cache_ttl,
        help="Seconds a successful query result is reused; 0 disables caching.",
    )
    parser.add_argument(
        "--cache.cleanup-interval",
        dest="cache_cleanup_interval",
        type=_non_negative_float,
        default=defaults.cache_cleanup_interval,
        help="Seconds between sweeps of expired cache entries; 0 disables.",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level,
    )
    parser.add_argument(
        "--log.buffer-size",
        dest="log_buffer_size",
        type=int,
        default=defaults.log_buffer_size,
        help="Number of recent log entries served on /logs.",
    )
    return parser


def parse_settings(argv: Sequence[str] | None = None) -> ExporterSettings:
    """Parse command-line flags into ExporterSettings."""
    args = build_parser().parse_args(argv)
    return ExporterSettings(**vars(args))


def build_app(settings: ExporterSettings) -> ASGIApp:
    """Load the catalog and wire every component into an ASGI app.

    Raises:
        ConfigError: If the catalog cannot be loaded.
    """
    catalog = load_catalog(settings.config_file)
    logger.info("Loaded %d targets from %s", len(catalog), settings.config_file)

    cache = TTLCache() if settings.cache_ttl > 0 else None
    evaluator = QueryEvaluator(
        PrometheusHTTPBackend(timeout=settings.query_timeout),
        cache=cache,
        cache_ttl=settings.cache_ttl,
    )
    context = ExporterContext(catalog, evaluator)

    log_storage = RingBufferLogStorage(max_size=settings.log_buffer_size)
    install_log_capture(log_storage)

    return create_asgi_app(
        context,
        log_storage=log_storage,
        cache_cleanup_interval=settings.cache_cleanup_interval,
    )


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_settings(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app = build_app(settings)
    except ConfigError as e:
        logger.error("Error loading config: %s", e)
        return 1

    logger.info("Listening on %s", settings.listen_address)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        lifespan="on",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
