"""
Pytest fixtures: settings, a scripted gateway backend and a FastAPI TestClient.
"""

import asyncio
import json

import pytest

from config import Settings
from dispatcher import Dispatcher
from gateway import GatewayBackend, GatewayReply, chat_envelope

VALID_RESULT = {
    "verdict": "AI Generated",
    "confidence": 87.456,
    "summary": "Uniform phrasing throughout.",
    "indicators": [
        {"label": "Repetitive structure", "detail": "Every paragraph opens the same way", "signal": "ai"},
    ],
}

ENV_VARS = (
    "GATEWAY_PROVIDER",
    "GATEWAY_API_KEY",
    "LOVABLE_API_KEY",
    "ANTHROPIC_API_KEY",
    "GATEWAY_URL",
    "GATEWAY_MODEL",
    "REQUEST_TIMEOUT",
    "MIN_TEXT_LENGTH",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


def reply_with(content, status_code=200):
    """A successful gateway reply whose message content is `content`."""
    return GatewayReply(status_code=status_code, envelope=chat_envelope(content), text=str(content))


class FakeBackend(GatewayBackend):
    """Records the content parts it receives and answers with a scripted reply."""

    name = "fake"

    def __init__(self, settings, reply=None, delay=0.0, error=None):
        super().__init__(settings)
        self.reply = reply or reply_with(json.dumps(VALID_RESULT))
        self.delay = delay
        self.error = error
        self.calls = []
        self.closed = False

    async def complete(self, parts):
        self.calls.append(parts)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self):
        self.closed = True


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings():
    return Settings(api_key="test-key", request_timeout=5.0)


@pytest.fixture
def backend(settings):
    return FakeBackend(settings)


@pytest.fixture
def dispatcher(settings, backend):
    return Dispatcher(settings, backend=backend)


@pytest.fixture
def client(dispatcher):
    """FastAPI TestClient wired to the fake backend."""
    from fastapi.testclient import TestClient

    from app import create_app

    return TestClient(create_app(dispatcher))
