"""Package version reported by `consulprom --version`.

Packaged builds can stamp a different string through CONSULPROM_VERSION
without touching the source.
"""
from __future__ import annotations

import os

__version__ = "0.1.0"

def get_version() -> str:
    return os.environ.get("CONSULPROM_VERSION", __version__)

__all__ = ["__version__", "get_version"]
