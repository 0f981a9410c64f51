"""HTTP client for the agent metrics endpoint."""
from __future__ import annotations

import logging

import requests

from consulprom.config.settings import DEFAULT_AGENT_URL
from consulprom.utils.exceptions import DecodeError, FetchError

from .snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)


class AgentClient:
    def __init__(self, url: str = DEFAULT_AGENT_URL, timeout: float = 5.0,
                 session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch(self) -> MetricsSnapshot:
        """GET the agent snapshot.

        Raises FetchError on network failure or non-2xx status and DecodeError
        when the body is not a valid snapshot.
        """
        try:
            response = self._session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"agent metrics request to {self.url} failed: {e}") from e
        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"agent metrics body is not JSON: {e}") from e
        snapshot = MetricsSnapshot.from_payload(payload)
        logger.debug("fetched %d gauges from %s", len(snapshot.gauges), self.url)
        return snapshot

    def close(self) -> None:
        self._session.close()


__all__ = ["AgentClient"]
