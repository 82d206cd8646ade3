"""
Request dispatcher.

One coroutine per media type: validate the input, build the prompt and
payload parts, send them through the gateway backend under a deadline, map
upstream failures, and normalize the reply. Nothing is retried or cached.
"""

import asyncio
import time
from typing import List, Optional

from config import Settings
from errors import (
    GatewayTimeout,
    InputValidationError,
    UpstreamBillingExhausted,
    UpstreamGenericFailure,
    UpstreamRateLimited,
)
from gateway import ContentPart, GatewayBackend, GatewayReply, create_backend
from logger import get_logger
from media import check_audio_data, check_image_data
from models import AnalysisResult
from normalizer import normalize
from prompts import build_audio_prompt, build_image_prompt, build_text_prompt

logger = get_logger(__name__)

# Upstream error bodies can be large; keep log lines short
ERROR_BODY_LOG_LIMIT = 500


class Dispatcher:
    def __init__(self, settings: Settings, backend: GatewayBackend = None):
        self.settings = settings
        self.backend = backend or create_backend(settings)

    async def analyze_text(self, text: Optional[str]) -> AnalysisResult:
        text = (text or "").strip()
        if len(text) < self.settings.min_text_length:
            raise InputValidationError(
                f"Please enter at least {self.settings.min_text_length} characters."
            )
        parts = [{"type": "text", "text": build_text_prompt(text)}]
        return await self._dispatch("text", parts)

    async def analyze_image(self, image_data: Optional[str]) -> AnalysisResult:
        image_ref = check_image_data(image_data)
        parts = [
            {"type": "text", "text": build_image_prompt()},
            {"type": "image_url", "image_url": {"url": image_ref}},
        ]
        return await self._dispatch("image", parts)

    async def analyze_audio(self, audio_data: Optional[str], file_name: Optional[str] = None) -> AnalysisResult:
        payload, fmt = check_audio_data(audio_data, file_name)
        parts = [
            {"type": "text", "text": build_audio_prompt(file_name)},
            {"type": "input_audio", "input_audio": {"data": payload, "format": fmt}},
        ]
        return await self._dispatch("audio", parts)

    async def _dispatch(self, media_type: str, parts: List[ContentPart]) -> AnalysisResult:
        started = time.monotonic()
        try:
            reply = await asyncio.wait_for(
                self.backend.complete(parts),
                timeout=self.settings.request_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("gateway_deadline_exceeded", media_type=media_type,
                           timeout_sec=self.settings.request_timeout)
            raise GatewayTimeout("Analysis timed out. Please try again.")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        self._raise_for_status(media_type, reply)

        result = normalize(reply.envelope)
        logger.info("analysis_completed", media_type=media_type, verdict=result.verdict,
                    confidence=result.confidence, indicators=len(result.indicators),
                    elapsed_ms=elapsed_ms)
        return result

    @staticmethod
    def _raise_for_status(media_type: str, reply: GatewayReply) -> None:
        if reply.ok:
            return
        logger.error("gateway_error", media_type=media_type, status=reply.status_code,
                     body=reply.text[:ERROR_BODY_LOG_LIMIT])
        if reply.status_code == 429:
            raise UpstreamRateLimited()
        if reply.status_code == 402:
            raise UpstreamBillingExhausted()
        raise UpstreamGenericFailure(reply.status_code)

    async def aclose(self) -> None:
        await self.backend.aclose()
