from __future__ import annotations

from .settings import ScraperSettings, get_settings

__all__ = ["ScraperSettings", "get_settings"]
