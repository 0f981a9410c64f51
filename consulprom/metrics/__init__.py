"""Dynamic metric registry facade.

Public imports:
    from consulprom.metrics import Registry, Counter, Gauge, Observable, label_key
"""
from __future__ import annotations

from .instruments import Counter, Gauge
from .labels import DISCOVERED_GAUGE_LABELS, MetricLabel, label_key
from .observable import Observable
from .registry import Registry, get_default_registry
from .server import ScrapeServer

__all__ = [
    "Counter",
    "Gauge",
    "Observable",
    "Registry",
    "ScrapeServer",
    "MetricLabel",
    "DISCOVERED_GAUGE_LABELS",
    "label_key",
    "get_default_registry",
]
