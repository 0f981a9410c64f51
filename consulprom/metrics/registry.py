"""Metric family factory and scrape endpoint owner.

``Registry`` creates prometheus_client families on demand, wraps them in
``Counter`` / ``Gauge`` instruments and owns the ``ScrapeServer`` that
exposes them.

Registration is idempotent by detection, not by reuse: creating a family
whose name is already taken raises ``AlreadyRegisteredError`` (carrying the
earlier wrapper when this Registry made it) so callers decide whether a
duplicate is fatal. Use ``already_registered(exc)`` to test for it.

Usage:
    reg = Registry(port=9108)
    reg.start()
    g = reg.create_gauge("consul_raft_apply", "consul_raft_apply", ["name"])
    g.with_labels("consul_raft_apply").set(42)
    reg.close()
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import prometheus_client
from prometheus_client import REGISTRY, CollectorRegistry

from consulprom.utils.exceptions import AlreadyRegisteredError, RegistrationError

from .instruments import Counter, Gauge
from .server import ScrapeServer

logger = logging.getLogger(__name__)

_DUPLICATE_MARKER = "Duplicated timeseries"


def _normalize_labels(labels: Iterable[str] | None) -> Sequence[str]:
    if not labels:
        return ()
    return tuple(str(l) for l in labels)


class Registry:
    def __init__(self, port: int = 9108, host: str = "0.0.0.0", *, active: bool = True,
                 collector_registry: CollectorRegistry | None = None) -> None:
        self.port = port
        self.host = host
        self.active = active
        self.collector_registry = collector_registry if collector_registry is not None else REGISTRY
        self._families: dict[str, Counter | Gauge] = {}
        self._lock = threading.Lock()
        self._server = ScrapeServer(port=port, host=host, registry=self.collector_registry)

    @property
    def server(self) -> ScrapeServer:
        return self._server

    def families(self) -> list[str]:
        with self._lock:
            return sorted(self._families)

    def _register(self, name: str, ctor: Callable[..., Any], wrapper: type[Counter] | type[Gauge],
                  doc: str, labels: Iterable[str] | None) -> Any:
        with self._lock:
            existing = self._families.get(name)
            if existing is not None:
                raise AlreadyRegisteredError(name, existing=existing)
            try:
                family = ctor(name, doc, _normalize_labels(labels), registry=self.collector_registry)
            except ValueError as e:
                if _DUPLICATE_MARKER in str(e):
                    raise AlreadyRegisteredError(name) from e
                raise RegistrationError(name, f"failed to register metric {name!r}: {e}") from e
            instrument = wrapper(family=family, active=self.active)
            self._families[name] = instrument
        logger.debug("registered %s family %s labels=%s", wrapper.__name__.lower(), name, list(_normalize_labels(labels)))
        return instrument

    def create_counter(self, name: str, help: str, label_names: Iterable[str] | None = None) -> Counter:
        return self._register(name, prometheus_client.Counter, Counter, help, label_names)

    def create_gauge(self, name: str, help: str, label_names: Iterable[str] | None = None) -> Gauge:
        return self._register(name, prometheus_client.Gauge, Gauge, help, label_names)

    @staticmethod
    def already_registered(exc: BaseException | None) -> bool:
        """True if ``exc`` reports a duplicate family name."""
        return isinstance(exc, AlreadyRegisteredError)

    def start(self) -> None:
        """Begin serving scrape requests in the background.

        Raises ScrapeServerError if the port cannot be bound.
        """
        self._server.start()

    def close(self) -> None:
        self._server.close()


# Process-wide default registry, created lazily from settings.
_DEFAULT: Registry | None = None
_DEFAULT_LOCK = threading.Lock()


def get_default_registry() -> Registry:
    global _DEFAULT  # noqa: PLW0603
    if _DEFAULT is not None:
        return _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            from consulprom.config.settings import get_settings
            s = get_settings()
            _DEFAULT = Registry(port=s.metrics_port, host=s.metrics_host, active=s.metrics_enabled)
        return _DEFAULT


def clear_default_registry() -> None:
    """Forget the default Registry (used in tests). Safe to call when unset."""
    global _DEFAULT  # noqa: PLW0603
    with _DEFAULT_LOCK:
        _DEFAULT = None


__all__ = ["Registry", "get_default_registry", "clear_default_registry"]
