#!/usr/bin/env python3
"""consulprom command line entrypoint.

Usage:
    python -m consulprom.main --port 9108 --agent-url http://127.0.0.1:8500/v1/agent/metrics
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from collections.abc import Sequence

from consulprom.config.settings import ScraperSettings
from consulprom.scraper.loop import Scraper
from consulprom.utils.exceptions import ConfigError, ScrapeServerError
from consulprom.utils.logging_utils import setup_logging
from consulprom.version import get_version

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="consulprom",
        description="Republish Consul agent gauges on a Prometheus scrape endpoint",
    )
    parser.add_argument("--agent-url", help="Agent metrics URL (env CONSULPROM_AGENT_URL)")
    parser.add_argument("--interval", type=float, help="Seconds between agent polls")
    parser.add_argument("--timeout", type=float, help="Agent request timeout in seconds")
    parser.add_argument("--host", help="Scrape endpoint bind address")
    parser.add_argument("--port", type=int, help="Scrape endpoint port")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--disable-metrics", action="store_true",
                        help="Register families but never update them")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


def apply_args(settings: ScraperSettings, args: argparse.Namespace) -> ScraperSettings:
    """Overlay explicitly passed CLI flags on top of env-derived settings."""
    overrides = {}
    if args.agent_url:
        overrides["agent_url"] = args.agent_url
    if args.interval is not None:
        if args.interval <= 0:
            raise ConfigError("--interval must be positive")
        overrides["poll_interval"] = args.interval
    if args.timeout is not None:
        if args.timeout <= 0:
            raise ConfigError("--timeout must be positive")
        overrides["fetch_timeout"] = args.timeout
    if args.host:
        overrides["metrics_host"] = args.host
    if args.port is not None:
        overrides["metrics_port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    if args.disable_metrics:
        overrides["metrics_enabled"] = False
    return dataclasses.replace(settings, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_args(ScraperSettings.from_env(), args)
    except ConfigError as e:
        parser.error(str(e))
    setup_logging(settings.log_level, settings.log_file, json_logs=settings.json_logs)

    shutdown = threading.Event()

    def _signal_handler(signum, _frame):
        logger.info("Received signal %s; shutting down", signum)
        shutdown.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    scraper = Scraper(settings)
    try:
        scraper.start()
    except ScrapeServerError as e:
        logger.error("Failed to start scrape endpoint: %s", e)
        return 1
    try:
        while not shutdown.wait(1.0):
            pass
    finally:
        try:
            scraper.close()
        except ScrapeServerError as e:
            logger.error("Failed to stop scrape endpoint: %s", e)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
