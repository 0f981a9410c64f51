from __future__ import annotations

from .client import AgentClient
from .loop import Scraper, ScraperState
from .snapshot import GaugeSample, MetricsSnapshot, rename_metric

__all__ = [
    "AgentClient",
    "Scraper",
    "ScraperState",
    "GaugeSample",
    "MetricsSnapshot",
    "rename_metric",
]
