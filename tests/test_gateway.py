"""
Tests for the gateway backends, using httpx.MockTransport and a stub Anthropic client.
"""

import asyncio
import json
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from config import Settings
from errors import GatewayTimeout, GatewayUnavailable, InputValidationError
from gateway import AnthropicBackend, ChatCompletionsBackend, create_backend
from normalizer import extract_content

PARTS = [
    {"type": "text", "text": "Is this AI?"},
    {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}},
]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def openai_settings():
    return Settings(api_key="secret", gateway_url="https://gateway.test/v1/chat/completions",
                    model="google/gemini-2.5-pro")


def test_chat_completions_request_shape(openai_settings):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

    backend = ChatCompletionsBackend(openai_settings, transport=httpx.MockTransport(handler))
    reply = run(backend.complete(PARTS))

    assert reply.ok
    assert extract_content(reply.envelope) == "{}"
    assert seen["auth"] == "Bearer secret"
    assert seen["url"] == "https://gateway.test/v1/chat/completions"
    assert seen["body"] == {
        "model": "google/gemini-2.5-pro",
        "messages": [{"role": "user", "content": PARTS}],
    }


def test_chat_completions_error_status_is_returned(openai_settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(429, text="slow down"))
    reply = run(ChatCompletionsBackend(openai_settings, transport=transport).complete(PARTS))
    assert not reply.ok
    assert reply.status_code == 429
    assert reply.envelope is None
    assert reply.text == "slow down"


def test_chat_completions_non_json_body(openai_settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
    reply = run(ChatCompletionsBackend(openai_settings, transport=transport).complete(PARTS))
    assert reply.ok
    assert reply.envelope is None


def test_chat_completions_connection_error(openai_settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend = ChatCompletionsBackend(openai_settings, transport=httpx.MockTransport(handler))
    with pytest.raises(GatewayUnavailable):
        run(backend.complete(PARTS))


def test_chat_completions_timeout(openai_settings):
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    backend = ChatCompletionsBackend(openai_settings, transport=httpx.MockTransport(handler))
    with pytest.raises(GatewayTimeout):
        run(backend.complete(PARTS))


class StubMessages:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def anthropic_backend(messages):
    settings = Settings(api_key="secret", provider="anthropic", model="claude-sonnet-4-5-20250929")
    client = SimpleNamespace(messages=messages)
    return AnthropicBackend(settings, client=client)


def test_anthropic_reply_is_wrapped_in_chat_envelope():
    response = SimpleNamespace(content=[SimpleNamespace(type="text", text='{"verdict": "AI Generated"}')])
    messages = StubMessages(response=response)
    reply = run(anthropic_backend(messages).complete(PARTS))

    assert reply.ok
    assert extract_content(reply.envelope) == '{"verdict": "AI Generated"}'
    assert messages.kwargs["model"] == "claude-sonnet-4-5-20250929"
    blocks = messages.kwargs["messages"][0]["content"]
    assert blocks[0] == {"type": "text", "text": "Is this AI?"}
    assert blocks[1] == {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="},
    }


def test_anthropic_remote_image_uses_url_source():
    blocks = AnthropicBackend.to_blocks([{"type": "image_url", "image_url": {"url": "https://x.test/a.png"}}])
    assert blocks == [{"type": "image", "source": {"type": "url", "url": "https://x.test/a.png"}}]


def test_anthropic_rejects_audio():
    messages = StubMessages()
    parts = [{"type": "input_audio", "input_audio": {"data": "AAAA", "format": "mp3"}}]
    with pytest.raises(InputValidationError, match="not supported"):
        run(anthropic_backend(messages).complete(parts))
    assert messages.kwargs is None


def test_anthropic_status_error_keeps_status_code():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.RateLimitError("rate limited", response=httpx.Response(429, request=request), body=None)
    reply = run(anthropic_backend(StubMessages(error=error)).complete(PARTS))
    assert reply.status_code == 429
    assert reply.envelope is None


def test_anthropic_connection_error():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIConnectionError(request=request)
    with pytest.raises(GatewayUnavailable):
        run(anthropic_backend(StubMessages(error=error)).complete(PARTS))


def test_create_backend_picks_provider(openai_settings):
    assert isinstance(create_backend(openai_settings), ChatCompletionsBackend)
    settings = Settings(api_key="secret", provider="anthropic")
    assert isinstance(create_backend(settings), AnthropicBackend)
