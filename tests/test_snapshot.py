from __future__ import annotations

import pytest

from consulprom.scraper.snapshot import GaugeSample, MetricsSnapshot, rename_metric, rename_samples
from consulprom.utils.exceptions import DecodeError


@pytest.mark.parametrize("raw,expected", [
    ("consul.raft.commitTime", "consul_raft_commitTime"),
    ("a.b.c", "a_b_c"),
    ("no_dots", "no_dots"),
    ("..", "__"),
])
def test_rename_metric(raw, expected):
    assert rename_metric(raw) == expected


def test_rename_samples_keeps_values_and_collisions():
    out = rename_samples([GaugeSample("a.b", 1.0), GaugeSample("a_b", 2.0)])
    assert out == [GaugeSample("a_b", 1.0), GaugeSample("a_b", 2.0)]


def test_from_payload_decodes_gauges():
    snap = MetricsSnapshot.from_payload({
        "Timestamp": "2026-10-18 10:00:00 +0000 UTC",
        "Gauges": [
            {"Name": "consul.raft.apply", "Value": 42, "Labels": {}},
            {"Name": "consul.runtime.alloc_bytes", "Value": 1.5e6},
        ],
        "Counters": [{"Name": "ignored", "Count": 1}],
    })
    assert snap.gauges == (
        GaugeSample("consul.raft.apply", 42.0),
        GaugeSample("consul.runtime.alloc_bytes", 1.5e6),
    )
    assert [g.name for g in snap.renamed()] == ["consul_raft_apply", "consul_runtime_alloc_bytes"]


def test_from_payload_missing_gauges_is_empty():
    assert MetricsSnapshot.from_payload({}).gauges == ()
    assert MetricsSnapshot.from_payload({"Gauges": None}).gauges == ()


@pytest.mark.parametrize("payload", [
    [],
    "nope",
    {"Gauges": {"Name": "x"}},
    {"Gauges": ["x"]},
    {"Gauges": [{"Value": 1}]},
    {"Gauges": [{"Name": "x", "Value": "1"}]},
    {"Gauges": [{"Name": "x", "Value": True}]},
])
def test_from_payload_rejects_malformed(payload):
    with pytest.raises(DecodeError):
        MetricsSnapshot.from_payload(payload)
