from __future__ import annotations

import pytest
import requests

from tracker_populator.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json
        self.content = b"" if payload is None and not raises_json else b"{}"

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def _client(max_attempts: int = 1) -> HttpClient:
    return HttpClient("http://localhost/dhis", retry=RetryConfig(max_attempts=max_attempts, multiplier=0, max_wait=0, jitter=0))


def test_paths_resolve_against_base_url():
    assert _client().url_for("api/events") == "http://localhost/dhis/api/events"


def test_get_returns_status_and_body(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(404, {"httpStatus": "Not Found"}))

    response = client.get("api/dataElements/x")

    assert response.status_code == 404
    assert response.body == {"httpStatus": "Not Found"}
    assert response.request.method == "GET"


def test_invalid_or_empty_json_is_none(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))
    assert client.post("api/enrollments", {}).body is None

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(201))
    assert client.post("api/enrollments", {}).body is None


def test_get_retries_retryable_status_then_returns_last(monkeypatch):
    client = _client(max_attempts=3)
    answers = [FakeResponse(503, {"x": 1}), FakeResponse(503, {"x": 2}), FakeResponse(200, {"ok": True})]
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: answers.pop(0))

    assert client.get("api/events").body == {"ok": True}


def test_get_returns_final_retryable_response_when_attempts_run_out(monkeypatch):
    client = _client(max_attempts=2)
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    assert client.get("api/events").status_code == 503


def test_writes_are_never_retried(monkeypatch):
    client = _client(max_attempts=3)
    calls = []

    def fake_request(**kwargs):
        calls.append(kwargs["method"])
        return FakeResponse(503, {"status": "ERROR"})

    monkeypatch.setattr(client.session, "request", fake_request)

    assert client.post("api/events", {"a": 1}).status_code == 503
    assert calls == ["POST"]


def test_connection_errors_raise(monkeypatch):
    client = _client(max_attempts=2)

    def fail(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", fail)

    with pytest.raises(RetryableHttpError):
        client.get("api/events")
    with pytest.raises(HttpRequestError):
        client.put("api/trackedEntityInstances/x", {})
