from __future__ import annotations

import pytest
import requests

from consulprom.scraper.client import AgentClient
from consulprom.utils.exceptions import DecodeError, FetchError


class _FakeResponse:
    def __init__(self, status: int = 200, payload=None, body_error: Exception | None = None) -> None:
        self.status_code = status
        self._payload = payload
        self._body_error = body_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._body_error is not None:
            raise self._body_error
        return self._payload


class _FakeSession:
    def __init__(self, result) -> None:
        self.result = result
        self.calls: list[tuple[str, float]] = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result

    def close(self) -> None:
        self.closed = True


def test_fetch_decodes_snapshot_with_timeout():
    session = _FakeSession(_FakeResponse(payload={"Gauges": [{"Name": "consul.raft.apply", "Value": 42}]}))
    client = AgentClient("http://agent/v1/agent/metrics", timeout=2.5, session=session)
    snap = client.fetch()
    assert [(g.name, g.value) for g in snap.gauges] == [("consul.raft.apply", 42.0)]
    assert session.calls == [("http://agent/v1/agent/metrics", 2.5)]


def test_fetch_network_error():
    client = AgentClient(session=_FakeSession(requests.exceptions.ConnectionError("refused")))
    with pytest.raises(FetchError):
        client.fetch()


def test_fetch_non_2xx():
    client = AgentClient(session=_FakeSession(_FakeResponse(status=503)))
    with pytest.raises(FetchError):
        client.fetch()


def test_fetch_invalid_json():
    client = AgentClient(session=_FakeSession(_FakeResponse(body_error=ValueError("Expecting value"))))
    with pytest.raises(DecodeError):
        client.fetch()


def test_close_closes_session():
    session = _FakeSession(_FakeResponse(payload={}))
    AgentClient(session=session).close()
    assert session.closed
