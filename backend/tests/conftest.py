"""Shared fixtures: settings built from a controlled environment and
``httpx`` clients backed by a mock transport."""

from __future__ import annotations

import io
from typing import Callable, List

import httpx
import pytest
from PIL import Image

from post_enhancer.config import Settings


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("AUTH_TOKEN", "test-secret")
    monkeypatch.setenv("WAITER_MODE", "callback")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://enhancer.test")
    monkeypatch.setenv("WP_URL", "https://blog.example.com")
    monkeypatch.setenv("WP_USER", "editor")
    monkeypatch.setenv("WP_APP_PASSWORD", "abcd efgh")
    monkeypatch.setenv("KIE_API_KEY", "kie-key")
    monkeypatch.setenv("KIE_BASE_URL", "https://kie.test")
    monkeypatch.setenv("YOUTUBE_API_KEY", "yt-key")
    monkeypatch.setenv("YT_CHANNEL_ID", "UC123")
    monkeypatch.setenv("BOT_TOKEN", "bot-token")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "42")
    monkeypatch.setenv("SITE_NAME", "Example Blog")
    monkeypatch.delenv("GEO_ADDRESS", raising=False)
    monkeypatch.delenv("GEO_LATITUDE", raising=False)
    monkeypatch.delenv("GEO_LONGITUDE", raising=False)
    return Settings()


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def mock_http():
    """Factory returning ``(client, transport)`` for a request handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        return client, transport

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (8, 6), (255, 0, 0, 128)).save(buf, format="PNG")
    return buf.getvalue()
