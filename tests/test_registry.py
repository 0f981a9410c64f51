from __future__ import annotations

import contextlib
import socket
import urllib.error
import urllib.request

import pytest

from consulprom.metrics.instruments import Counter, Gauge
from consulprom.metrics.registry import Registry
from consulprom.metrics.server import MAX_HEADER_BYTES
from consulprom.utils.exceptions import (
    AlreadyRegisteredError,
    RegistrationError,
    ScrapeServerError,
)


def test_create_counter_and_gauge(registry):
    c = registry.create_counter("requests", "requests served", ["code"])
    g = registry.create_gauge("temperature", "current temperature", ["room"])
    assert isinstance(c, Counter)
    assert isinstance(g, Gauge)
    c.increment("200")
    g.set(21.5, "kitchen")
    reg = registry.collector_registry
    assert reg.get_sample_value("requests_total", {"code": "200"}) == 1.0
    assert reg.get_sample_value("temperature", {"room": "kitchen"}) == 21.5
    assert registry.families() == ["requests", "temperature"]


def test_duplicate_registration_is_distinguished(registry):
    first = registry.create_gauge("dup", "dup", ["name"])
    with pytest.raises(AlreadyRegisteredError) as info:
        registry.create_gauge("dup", "dup", ["name"])
    assert registry.already_registered(info.value)
    assert info.value.existing is first
    assert info.value.name == "dup"


def test_duplicate_from_foreign_collector(collector_registry):
    a = Registry(collector_registry=collector_registry)
    b = Registry(collector_registry=collector_registry)
    a.create_gauge("shared", "shared")
    with pytest.raises(AlreadyRegisteredError) as info:
        b.create_gauge("shared", "shared")
    assert info.value.existing is None


def test_reserved_label_is_generic_failure(registry):
    with pytest.raises(RegistrationError) as info:
        registry.create_gauge("reserved_label", "nope", ["__internal"])
    assert not registry.already_registered(info.value)
    assert registry.families() == []


def test_already_registered_helper():
    assert Registry.already_registered(AlreadyRegisteredError("x"))
    assert not Registry.already_registered(RegistrationError("x"))
    assert not Registry.already_registered(ValueError("x"))
    assert not Registry.already_registered(None)


def test_inactive_registry_registers_but_never_updates(collector_registry):
    reg = Registry(active=False, collector_registry=collector_registry)
    g = reg.create_gauge("idle", "idle", ["name"])
    g.set(5, "a")
    assert "idle" in reg.families()
    assert collector_registry.get_sample_value("idle", {"name": "a"}) is None


def test_close_without_start_is_safe(registry):
    registry.close()
    registry.close()


def test_start_serves_scrapes(registry):
    registry.create_gauge("scraped", "scraped value", ["name"]).with_labels("scraped").set(3)
    registry.start()
    host, port = registry.server.address
    with contextlib.closing(urllib.request.urlopen(f"http://{host}:{port}/metrics", timeout=5)) as resp:  # noqa: S310 - local
        body = resp.read().decode()
    assert 'scraped{name="scraped"} 3.0' in body
    registry.close()
    assert not registry.server.running


def test_oversized_headers_rejected(registry):
    registry.start()
    host, port = registry.server.address
    chunk = "x" * 60000
    req = urllib.request.Request(f"http://{host}:{port}/metrics")
    for i in range(MAX_HEADER_BYTES // len(chunk) + 2):
        req.add_header(f"X-Pad-{i}", chunk)
    with pytest.raises(urllib.error.HTTPError) as info:
        urllib.request.urlopen(req, timeout=5)  # noqa: S310 - local
    info.value.close()
    assert info.value.code == 431


def test_start_reports_bind_failure(collector_registry):
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        port = s.getsockname()[1]
        reg = Registry(port=port, host="127.0.0.1", collector_registry=collector_registry)
        with pytest.raises(ScrapeServerError):
            reg.start()
        assert not reg.server.running


def test_default_registry_is_process_wide(monkeypatch):
    from consulprom.config import settings as settings_mod
    from consulprom.metrics import registry as registry_mod
    monkeypatch.setenv("CONSULPROM_METRICS_PORT", "9555")
    settings_mod.get_settings(force_reload=True)
    registry_mod.clear_default_registry()
    try:
        first = registry_mod.get_default_registry()
        assert registry_mod.get_default_registry() is first
        assert first.port == 9555
    finally:
        registry_mod.clear_default_registry()
        settings_mod.get_settings(force_reload=True)
