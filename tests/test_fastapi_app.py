from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

import gemini_relay.relay.fastapi_app as app_mod
from gemini_relay.relay.config import Settings, get_settings

from fakes import FakeClient, FakeResponse, gemini_reply


class _FakeHttpxClient(FakeClient):
    """Context-manager wrapper matching how the handler opens httpx.Client."""

    replies: list[Any] = []

    def __init__(self, timeout: float | int | None = None) -> None:  # signature-compatible
        super().__init__(*self.replies)
        self.timeout = timeout

    def __enter__(self) -> "_FakeHttpxClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None


@pytest.fixture()
def client(monkeypatch, settings):
    monkeypatch.setattr(httpx, "Client", _FakeHttpxClient)
    app_mod.app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app_mod.app)
    app_mod.app.dependency_overrides.clear()


def test_health_ok(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "model": "test-model"}


def test_relay_with_mocked_httpx(client, monkeypatch) -> None:
    attributions = [{"web": {"uri": "https://example.org", "title": "Example"}}]
    monkeypatch.setattr(_FakeHttpxClient, "replies", [FakeResponse(200, gemini_reply("Hello test", attributions))])
    r = client.post("/api/gemini-proxy", json={"prompt": "test"})
    assert r.status_code == 200
    assert r.json() == {"text": "Hello test", "sources": [{"uri": "https://example.org", "title": "Example"}]}


@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "OPTIONS"])
def test_relay_rejects_non_post(client, method) -> None:
    r = client.request(method, "/api/gemini-proxy")
    assert r.status_code == 405
    assert r.json() == {"message": "Method Not Allowed. Use POST."}


def test_relay_rejects_head(client) -> None:
    r = client.head("/api/gemini-proxy")
    assert r.status_code == 405


def test_relay_bad_json(client) -> None:
    r = client.post("/api/gemini-proxy", content=b"{oops", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid JSON body received."}


def test_relay_missing_key() -> None:
    app_mod.app.dependency_overrides[get_settings] = lambda: Settings(api_key=None)
    try:
        r = TestClient(app_mod.app).post("/api/gemini-proxy", json={"prompt": "test"})
    finally:
        app_mod.app.dependency_overrides.clear()
    assert r.status_code == 503
    assert set(r.json()) == {"message"}
