from __future__ import annotations

import httpx
import pytest

from gemini_relay.relay.config import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_key="test-key", base_url="https://gemini.test/v1beta", model_id="test-model")


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def connect_error() -> httpx.ConnectError:
    return httpx.ConnectError("connection refused")
