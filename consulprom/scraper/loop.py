"""Poll loop republishing agent gauges through the dynamic registry.

Lifecycle: IDLE -> RUNNING (``start``) -> STOPPED (``close``).

Each tick (every ``poll_interval`` seconds, first one interval after start):
  * fetch the agent snapshot; on fetch/decode failure log, count and skip
  * rename every metric ('.' -> '_'); colliding names are last-write-wins
  * lazily register one gauge per renamed name, labelled ``name=<name>``,
    then set its value

Cache entries are only created on the poll thread, so the name -> gauge
cache needs no lock. Shutdown is a ``threading.Event`` the worker waits on
between ticks, so it is observed within one interval.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Protocol

from consulprom.config.settings import ScraperSettings, get_settings
from consulprom.metrics.instruments import Counter, Gauge
from consulprom.metrics.labels import DISCOVERED_GAUGE_LABELS, MetricLabel
from consulprom.metrics.registry import Registry
from consulprom.utils.exceptions import (
    AlreadyRegisteredError,
    DecodeError,
    FetchError,
    RegistrationError,
)

from .client import AgentClient
from .snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def fetch(self) -> MetricsSnapshot: ...


class ScraperState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Scraper:
    def __init__(self, settings: ScraperSettings | None = None, *,
                 registry: Registry | None = None,
                 client: SnapshotSource | None = None) -> None:
        self.settings = settings or get_settings()
        s = self.settings
        self.registry = registry or Registry(port=s.metrics_port, host=s.metrics_host, active=s.metrics_enabled)
        self.client: SnapshotSource = client or AgentClient(s.agent_url, timeout=s.fetch_timeout)
        self._gauges: dict[str, Gauge] = {}
        self._state = ScraperState.IDLE
        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

        self._polls: Counter | None = self._own_metric(
            self.registry.create_counter, "consulprom_polls",
            "Agent polls by outcome", [MetricLabel.outcome.value])
        self._registration_failures: Counter | None = self._own_metric(
            self.registry.create_counter, "consulprom_registration_failures",
            "Discovered metrics that could not be registered", [MetricLabel.metric.value])
        self._discovered: Gauge | None = self._own_metric(
            self.registry.create_gauge, "consulprom_discovered_metrics",
            "Distinct agent gauges republished so far", [])

    @staticmethod
    def _own_metric(factory, name: str, doc: str, labels: list[str]) -> Any:
        try:
            return factory(name, doc, labels)
        except AlreadyRegisteredError as e:
            if e.existing is None:
                logger.warning("self metric %s registered elsewhere; not reporting it", name)
            return e.existing
        except RegistrationError:
            logger.exception("failed to register self metric %s", name)
            return None

    @property
    def state(self) -> ScraperState:
        return self._state

    def known_metrics(self) -> list[str]:
        return sorted(self._gauges)

    def gauge_for(self, name: str) -> Gauge | None:
        return self._gauges.get(name)

    def start(self) -> None:
        """Start the scrape endpoint, then the background poll thread.

        Raises ScrapeServerError (leaving the scraper IDLE) if the endpoint
        cannot be bound.
        """
        with self._state_lock:
            if self._state is not ScraperState.IDLE:
                raise RuntimeError(f"scraper cannot start from state {self._state.value}")
            self.registry.start()
            self._thread = threading.Thread(target=self._run, name="consulprom-poll", daemon=True)
            self._state = ScraperState.RUNNING
            self._thread.start()
        logger.info("Polling %s every %ss", self.settings.agent_url, self.settings.poll_interval)

    def close(self) -> None:
        """Stop polling and the scrape endpoint. Later calls are no-ops."""
        with self._state_lock:
            previous = self._state
            if previous is ScraperState.STOPPED:
                return
            self._state = ScraperState.STOPPED
            self._stop.set()
            th, self._thread = self._thread, None
        if previous is ScraperState.IDLE:
            return
        if th is not None:
            th.join(timeout=self.settings.fetch_timeout + self.settings.poll_interval)
            if th.is_alive():  # pragma: no cover - only with a hung fetch
                logger.warning("poll thread still running after close")
        self.registry.close()
        logger.info("Scraper stopped")

    def _run(self) -> None:
        logger.debug("poll loop started interval=%s", self.settings.poll_interval)
        while not self._stop.wait(self.settings.poll_interval):
            try:
                self.poll_once()
            except Exception:  # noqa: BLE001 keep the worker alive
                logger.exception("Poll tick failed")
        logger.debug("poll loop terminated")

    def _count_poll(self, outcome: str) -> None:
        if self._polls is not None:
            self._polls.increment(outcome)

    def poll_once(self) -> int:
        """Run one fetch-and-publish tick; returns the number of gauges set."""
        try:
            snapshot = self.client.fetch()
        except FetchError as e:
            logger.warning("err metrics request: %s", e)
            self._count_poll("fetch_error")
            return 0
        except DecodeError as e:
            logger.warning("err decoding metrics response: %s", e)
            self._count_poll("decode_error")
            return 0

        updated = 0
        for sample in snapshot.renamed():
            gauge = self._gauges.get(sample.name)
            created = gauge is None
            if created:
                gauge = self._create_gauge(sample.name)
                if gauge is None:
                    continue
            try:
                gauge.set(sample.value)
            except ValueError as e:
                logger.warning("failed to set gauge %s: %s", sample.name, e)
                self._count_registration_failure(sample.name)
                continue
            if created:
                self._gauges[sample.name] = gauge
            updated += 1
        self._count_poll("ok")
        if self._discovered is not None:
            self._discovered.set(len(self._gauges))
        return updated

    def _create_gauge(self, name: str) -> Gauge | None:
        try:
            gauge = self.registry.create_gauge(name, name, DISCOVERED_GAUGE_LABELS)
        except AlreadyRegisteredError as e:
            existing = e.existing
            if not isinstance(existing, Gauge) or existing.label_names != DISCOVERED_GAUGE_LABELS:
                logger.warning("cannot reuse gauge family %s (labels must be %s): %s", name, DISCOVERED_GAUGE_LABELS, e)
                self._count_registration_failure(name)
                return None
            logger.debug("reusing existing gauge family %s", name)
            gauge = existing
        except RegistrationError as e:
            logger.warning("failed to create gauge %s: %s", name, e)
            self._count_registration_failure(name)
            return None
        return gauge.with_labels(name)

    def _count_registration_failure(self, name: str) -> None:
        if self._registration_failures is not None:
            self._registration_failures.increment(name)


__all__ = ["Scraper", "ScraperState", "SnapshotSource"]
