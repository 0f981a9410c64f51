"""Boolean parsing for CONSULPROM_* switches.

ScraperSettings.from_env reads flags such as CONSULPROM_METRICS_ENABLED and
CONSULPROM_JSON_LOGS through is_truthy; a set value outside TRUTHY_SET is off.
"""
from __future__ import annotations

TRUTHY_SET: set[str] = {"1","true","yes","on"}

def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET

__all__ = [
    'TRUTHY_SET',
    'is_truthy',
]
