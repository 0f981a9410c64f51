"""Agent metrics snapshot model and the metric renaming rule."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from consulprom.utils.exceptions import DecodeError


@dataclass(frozen=True)
class GaugeSample:
    name: str
    value: float


def rename_metric(name: str) -> str:
    """Map an agent metric name to a Prometheus-friendly one ('.' -> '_')."""
    return name.replace(".", "_")


def rename_samples(samples: Iterable[GaugeSample]) -> list[GaugeSample]:
    return [GaugeSample(name=rename_metric(s.name), value=s.value) for s in samples]


@dataclass(frozen=True)
class MetricsSnapshot:
    gauges: tuple[GaugeSample, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> MetricsSnapshot:
        """Decode ``{"Gauges": [{"Name": str, "Value": number}, ...]}``.

        Other top-level keys (Counters, Samples, Timestamp) are ignored and a
        missing ``Gauges`` key yields an empty snapshot.
        """
        if not isinstance(payload, Mapping):
            raise DecodeError(f"snapshot must be a JSON object, got {type(payload).__name__}")
        raw = payload.get("Gauges") or []
        if not isinstance(raw, list):
            raise DecodeError("snapshot 'Gauges' must be a list")
        gauges = []
        for i, item in enumerate(raw):
            if not isinstance(item, Mapping):
                raise DecodeError(f"gauge #{i} must be an object")
            name = item.get("Name")
            value = item.get("Value")
            if not isinstance(name, str) or not name:
                raise DecodeError(f"gauge #{i} has no Name")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise DecodeError(f"gauge {name!r} has non-numeric Value {value!r}")
            gauges.append(GaugeSample(name=name, value=float(value)))
        return cls(gauges=tuple(gauges))

    def renamed(self) -> list[GaugeSample]:
        return rename_samples(self.gauges)


__all__ = ["GaugeSample", "MetricsSnapshot", "rename_metric", "rename_samples"]
