"""Pytest configuration & shared fixtures for consulprom.

Responsibilities:
1. Ensure project root on sys.path.
2. Provide an isolated prometheus_client CollectorRegistry per test so
   dynamically created families never leak into the process default.
3. Provide a scripted in-process snapshot source for poll loop tests.
"""
from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prometheus_client import CollectorRegistry  # noqa: E402

from consulprom.config.settings import ScraperSettings  # noqa: E402
from consulprom.metrics.registry import Registry  # noqa: E402
from consulprom.scraper.snapshot import MetricsSnapshot  # noqa: E402


class ScriptedClient:
    """Returns queued payloads (or raises queued exceptions) one per fetch."""

    def __init__(self, responses: Iterable[object] = ()) -> None:
        self.responses = list(responses)
        self.calls = 0

    def push(self, response: object) -> None:
        self.responses.append(response)

    def fetch(self) -> MetricsSnapshot:
        self.calls += 1
        if not self.responses:
            return MetricsSnapshot()
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return MetricsSnapshot.from_payload(item)


@pytest.fixture()
def collector_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture()
def registry(collector_registry) -> Iterator[Registry]:
    reg = Registry(port=0, host='127.0.0.1', collector_registry=collector_registry)
    yield reg
    reg.close()


@pytest.fixture()
def settings() -> ScraperSettings:
    return ScraperSettings(agent_url='http://agent.invalid/v1/agent/metrics',
                           poll_interval=60.0, fetch_timeout=1.0,
                           metrics_host='127.0.0.1', metrics_port=0)


@pytest.fixture()
def scripted_client() -> ScriptedClient:
    return ScriptedClient()
