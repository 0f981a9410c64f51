"""Unified logging utilities for consulprom."""
from __future__ import annotations

import json
import logging
import os
import sys
import time

try:
    import orjson as _orjson  # type: ignore
except ImportError:  # pragma: no cover - optional speedup
    _orjson = None

DEFAULT_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

SUPPRESSED_LOGGERS = [
    'urllib3', 'requests',
]


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            'ts': getattr(record, 'created', time.time()),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'msg': record.getMessage(),
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        try:
            if _orjson is not None:
                return _orjson.dumps(payload).decode("utf-8")
            return json.dumps(payload)
        except (TypeError, ValueError):
            return str(payload)


def setup_logging(level: str = 'INFO', log_file: str | None = None, *,
                  json_logs: bool = False, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure root logging.

    Existing root handlers are removed so repeated calls do not duplicate
    output. The file handler (if enabled) always uses the plain text format.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    for h in root.handlers[:]:
        root.removeHandler(h)
        try:
            h.flush()
            h.close()
        except (OSError, ValueError):
            pass

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    if json_logs:
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            fh = logging.FileHandler(log_file, encoding='utf-8')
            fh.setLevel(log_level)
            fh.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            root.addHandler(fh)
        except OSError as e:
            root.error("Failed to create log file handler for %s: %s", log_file, e)

    for name in SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root

__all__ = ["setup_logging", "JsonFormatter", "DEFAULT_FORMAT"]
