"""consulprom: republish Consul agent telemetry as Prometheus gauges."""
from __future__ import annotations

from .version import __version__, get_version

__all__ = ["__version__", "get_version"]
