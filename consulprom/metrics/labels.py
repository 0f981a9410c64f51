"""
Label helpers for dynamically registered metric families.

Centralizes the label key used by discovered agent gauges and the derivation
of mapping keys from ordered label-value tuples.
"""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class MetricLabel(str, Enum):
    name = "name"
    outcome = "outcome"
    metric = "metric"


# Every discovered agent gauge carries its own (renamed) name as a label value.
DISCOVERED_GAUGE_LABELS = (MetricLabel.name.value,)


def label_key(values: Iterable[str]) -> str:
    """Return a deterministic mapping key for an ordered label-value tuple.

    Each value is length-prefixed, so ``["ab", "c"]`` and ``["a", "bc"]``
    yield distinct keys and order is significant.
    """
    return "".join(f"{len(v)}:{v}" for v in (str(x) for x in values))


__all__ = [
    "MetricLabel",
    "DISCOVERED_GAUGE_LABELS",
    "label_key",
]
