import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# MIME type -> format tag expected by the gateway's input_audio part
SUPPORTED_AUDIO_TYPES = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/vnd.wave": "wav",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/ogg": "ogg",
    "audio/webm": "webm",
    "audio/flac": "flac"
}

DEFAULT_AUDIO_FORMAT = "mp3"

PROVIDERS = {"openai", "anthropic"}

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODELS = {
    "openai": "google/gemini-2.5-pro",
    "anthropic": "claude-sonnet-4-5-20250929"
}


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup."""

    api_key: str
    provider: str = "openai"
    gateway_url: str = DEFAULT_GATEWAY_URL
    model: str = DEFAULT_MODELS["openai"]
    request_timeout: float = 60.0
    min_text_length: int = 20
    log_level: str = "INFO"
    log_format: str = "json"


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _positive_number(name: str, raw: str, cast):
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    """
    Build Settings from the environment (and .env when present).

    Raises:
        ConfigError: if the provider is unknown, its API key is missing,
            or a numeric setting cannot be parsed
    """
    load_dotenv()

    provider = _env("GATEWAY_PROVIDER", "openai").lower()
    if provider not in PROVIDERS:
        raise ConfigError(
            f"GATEWAY_PROVIDER must be one of {sorted(PROVIDERS)}, got {provider!r}"
        )

    if provider == "anthropic":
        api_key = _env("ANTHROPIC_API_KEY")
        key_name = "ANTHROPIC_API_KEY"
    else:
        api_key = _env("GATEWAY_API_KEY") or _env("LOVABLE_API_KEY")
        key_name = "GATEWAY_API_KEY"
    if not api_key:
        raise ConfigError(f"{key_name} is not configured")

    log_format = _env("LOG_FORMAT", "json").lower()
    if log_format not in ("json", "console"):
        raise ConfigError(f"LOG_FORMAT must be 'json' or 'console', got {log_format!r}")

    return Settings(
        api_key=api_key,
        provider=provider,
        gateway_url=_env("GATEWAY_URL", DEFAULT_GATEWAY_URL),
        model=_env("GATEWAY_MODEL", DEFAULT_MODELS[provider]),
        request_timeout=_positive_number("REQUEST_TIMEOUT", _env("REQUEST_TIMEOUT", "60"), float),
        min_text_length=_positive_number("MIN_TEXT_LENGTH", _env("MIN_TEXT_LENGTH", "20"), int),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        log_format=log_format,
    )
