"""
Gateway backends.

A backend sends one user message, given as chat-completions content parts,
to the remote model and returns the raw reply. Backends do not interpret
HTTP statuses; the dispatcher maps them to errors.

Content parts use the OpenAI chat format:
    {"type": "text", "text": ...}
    {"type": "image_url", "image_url": {"url": ...}}
    {"type": "input_audio", "input_audio": {"data": ..., "format": ...}}
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import anthropic
import httpx

from config import Settings
from errors import GatewayTimeout, GatewayUnavailable, InputValidationError
from media import is_remote_url, split_data_uri

ContentPart = Dict[str, Any]

SYSTEM_PROMPT = "You are an AI content detector. Respond ONLY with valid JSON."


@dataclass
class GatewayReply:
    status_code: int
    envelope: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def chat_envelope(content: Optional[str]) -> Dict[str, Any]:
    """Wrap reply text in the chat-completions envelope shape."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class GatewayBackend(ABC):
    """Base contract for a remote model gateway."""

    name = "base"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.model = settings.model

    @abstractmethod
    async def complete(self, parts: List[ContentPart]) -> GatewayReply:
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


class ChatCompletionsBackend(GatewayBackend):
    """
    OpenAI-compatible chat completions endpoint with bearer auth.

    `transport` is handed to httpx; tests pass an httpx.MockTransport.
    """

    name = "openai"

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport = None):
        super().__init__(settings)
        self.url = settings.gateway_url
        self.client = httpx.AsyncClient(
            timeout=settings.request_timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
            },
        )

    async def complete(self, parts: List[ContentPart]) -> GatewayReply:
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": parts}],
        }
        try:
            response = await self.client.post(self.url, json=body)
        except httpx.TimeoutException as e:
            raise GatewayTimeout(f"AI gateway timed out: {e}")
        except httpx.TransportError as e:
            raise GatewayUnavailable(f"AI gateway unreachable: {e}")

        envelope = None
        if response.is_success:
            try:
                envelope = response.json()
            except ValueError:
                envelope = None
        return GatewayReply(status_code=response.status_code, envelope=envelope, text=response.text)

    async def aclose(self) -> None:
        await self.client.aclose()


class AnthropicBackend(GatewayBackend):
    """Anthropic Messages API. Text and images only."""

    name = "anthropic"
    max_tokens = 1500

    def __init__(self, settings: Settings, client: Any = None):
        super().__init__(settings)
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.api_key,
            timeout=settings.request_timeout,
            max_retries=0,
        )

    @staticmethod
    def to_blocks(parts: List[ContentPart]) -> List[Dict[str, Any]]:
        blocks = []
        for part in parts:
            kind = part.get("type")
            if kind == "text":
                blocks.append({"type": "text", "text": part["text"]})
            elif kind == "image_url":
                url = part["image_url"]["url"]
                if is_remote_url(url):
                    source = {"type": "url", "url": url}
                else:
                    mime, data = split_data_uri(url)
                    source = {"type": "base64", "media_type": mime, "data": data}
                blocks.append({"type": "image", "source": source})
            elif kind == "input_audio":
                raise InputValidationError("Audio analysis is not supported by the anthropic provider")
            else:
                raise ValueError(f"Unsupported content part: {kind}")
        return blocks

    async def complete(self, parts: List[ContentPart]) -> GatewayReply:
        blocks = self.to_blocks(parts)
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": blocks}],
            )
        except anthropic.APIStatusError as e:
            return GatewayReply(status_code=e.status_code, text=e.message)
        except anthropic.APITimeoutError as e:
            raise GatewayTimeout(f"AI gateway timed out: {e}")
        except anthropic.APIConnectionError as e:
            raise GatewayUnavailable(f"AI gateway unreachable: {e}")

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return GatewayReply(status_code=200, envelope=chat_envelope(text or None), text=text)

    async def aclose(self) -> None:
        await self.client.close()


BACKENDS = {
    ChatCompletionsBackend.name: ChatCompletionsBackend,
    AnthropicBackend.name: AnthropicBackend,
}


def create_backend(settings: Settings) -> GatewayBackend:
    try:
        backend_cls = BACKENDS[settings.provider]
    except KeyError:
        raise ValueError(f"Unsupported gateway provider: {settings.provider}")
    return backend_cls(settings)
