"""consulprom exception hierarchy.

A small exception tree for categorizing failures. Tick-level failures
(fetch, decode, registration) are logged and counted by the poll loop;
``SubscriberActiveError`` signals a programming error and is not meant to be
caught.
"""
from __future__ import annotations

from typing import Any


class ConsulPromException(Exception):
    """Base class for all consulprom exceptions."""


class ConfigError(ConsulPromException):
    """Configuration-related issues (invalid values, bad CLI combinations)."""


class FetchError(ConsulPromException):
    """The agent metrics endpoint could not be reached or returned non-2xx."""


class DecodeError(ConsulPromException):
    """The agent response body was not a valid metrics snapshot."""


class RegistrationError(ConsulPromException):
    """A metric family was rejected by the exposition registry."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"failed to register metric {name!r}")
        self.name = name


class AlreadyRegisteredError(RegistrationError):
    """The metric family name is already registered.

    ``existing`` holds the wrapper returned by the earlier registration when
    the same Registry created it, otherwise None.
    """

    def __init__(self, name: str, existing: Any = None) -> None:
        super().__init__(name, f"metric {name!r} is already registered")
        self.existing = existing


class ScrapeServerError(ConsulPromException):
    """The scrape endpoint failed to start or stop."""


class SubscriberActiveError(ConsulPromException, RuntimeError):
    """A second subscriber was attached while one is still active."""


__all__ = [
    "ConsulPromException",
    "ConfigError",
    "FetchError",
    "DecodeError",
    "RegistrationError",
    "AlreadyRegisteredError",
    "ScrapeServerError",
    "SubscriberActiveError",
]
