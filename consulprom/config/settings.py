"""Scraper settings hydrated from the environment.

Single-pass environment hydration object so the poll loop, registry and CLI
read one snapshot instead of scattered os.environ lookups. CLI flags are
applied on top via ``dataclasses.replace``.
"""
from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field

from consulprom.utils.env_flags import is_truthy

__all__ = ["ScraperSettings", "get_settings", "DEFAULT_AGENT_URL"]

logger = logging.getLogger(__name__)

DEFAULT_AGENT_URL = "http://127.0.0.1:8500/v1/agent/metrics"


@dataclass(slots=True)
class ScraperSettings:
    # Remote agent
    agent_url: str = DEFAULT_AGENT_URL
    poll_interval: float = 5.0
    fetch_timeout: float = 5.0

    # Scrape endpoint
    metrics_host: str = "0.0.0.0"
    metrics_port: int = 9108
    metrics_enabled: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None
    json_logs: bool = False

    # Raw env snapshot (debug / diagnostics)
    _env_snapshot: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ScraperSettings:
        e = env if env is not None else os.environ
        def _bool(name: str, default: bool) -> bool:
            raw = e.get(name)
            if raw is None or not raw.strip():
                return default
            return is_truthy(raw)
        def _int(name: str, default: int) -> int:
            raw = e.get(name)
            if raw is None or not raw.strip():
                return default
            try:
                return int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r (must be int); using %s", name, raw, default)
                return default
        def _float(name: str, default: float) -> float:
            raw = e.get(name)
            if raw is None or not raw.strip():
                return default
            try:
                val = float(raw)
            except ValueError:
                logger.warning("Invalid %s=%r (must be number); using %s", name, raw, default)
                return default
            if val <= 0:
                logger.warning("Ignoring non-positive %s=%r; using %s", name, raw, default)
                return default
            return val
        return cls(
            agent_url=e.get('CONSULPROM_AGENT_URL') or DEFAULT_AGENT_URL,
            poll_interval=_float('CONSULPROM_POLL_INTERVAL', 5.0),
            fetch_timeout=_float('CONSULPROM_FETCH_TIMEOUT', 5.0),
            metrics_host=e.get('CONSULPROM_METRICS_HOST') or "0.0.0.0",
            metrics_port=_int('CONSULPROM_METRICS_PORT', 9108),
            metrics_enabled=_bool('CONSULPROM_METRICS_ENABLED', True),
            log_level=(e.get('CONSULPROM_LOG_LEVEL') or "INFO").upper(),
            log_file=e.get('CONSULPROM_LOG_FILE') or None,
            json_logs=_bool('CONSULPROM_JSON_LOGS', False),
            _env_snapshot={k: v for k, v in e.items() if k.startswith('CONSULPROM_')},
        )


# Lazy singleton (thread-safe) to avoid repeated parsing
_settings_lock = threading.Lock()
_settings_singleton: ScraperSettings | None = None

def get_settings(force_reload: bool = False) -> ScraperSettings:
    global _settings_singleton
    if _settings_singleton is not None and not force_reload:
        return _settings_singleton
    with _settings_lock:
        if _settings_singleton is None or force_reload:
            _settings_singleton = ScraperSettings.from_env()
            logger.debug(
                "scraper.settings.init agent_url=%s interval=%.2f timeout=%.2f port=%s enabled=%s",
                _settings_singleton.agent_url, _settings_singleton.poll_interval,
                _settings_singleton.fetch_timeout, _settings_singleton.metrics_port,
                _settings_singleton.metrics_enabled,
            )
        return _settings_singleton
