"""Helpers for the encoded media payloads sent by the browser."""

import mimetypes
import re
from typing import Optional, Tuple

from config import DEFAULT_AUDIO_FORMAT, SUPPORTED_AUDIO_TYPES
from errors import InputValidationError

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,", re.IGNORECASE)


def split_data_uri(value: str) -> Tuple[Optional[str], str]:
    """
    Split a base64 data URI into (mime_type, payload).

    Strings without a data URI prefix are returned as (None, value).
    """
    match = DATA_URI_RE.match(value)
    if not match:
        return None, value
    mime = match.group("mime")
    return (mime.lower() if mime else None), value[match.end():]


def is_remote_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def check_image_data(image_data: Optional[str]) -> str:
    """Return the image reference to forward, or raise InputValidationError."""
    image_data = (image_data or "").strip()
    if not image_data:
        raise InputValidationError("No image data provided")
    if is_remote_url(image_data):
        return image_data

    mime, payload = split_data_uri(image_data)
    if mime is None and payload == image_data:
        raise InputValidationError("Image data must be a base64 data URI or an http(s) URL")
    if mime is None or not mime.startswith("image/"):
        raise InputValidationError(f"Unsupported image type: {mime}")
    if not payload:
        raise InputValidationError("No image data provided")
    return image_data


def audio_format(mime: Optional[str], file_name: Optional[str]) -> str:
    """Pick the input_audio format tag from the MIME type, then the file name."""
    if mime in SUPPORTED_AUDIO_TYPES:
        return SUPPORTED_AUDIO_TYPES[mime]
    if file_name:
        guessed, _ = mimetypes.guess_type(file_name)
        if guessed in SUPPORTED_AUDIO_TYPES:
            return SUPPORTED_AUDIO_TYPES[guessed]
    return DEFAULT_AUDIO_FORMAT


def check_audio_data(audio_data: Optional[str], file_name: Optional[str] = None) -> Tuple[str, str]:
    """
    Validate an audio payload.

    Returns:
        (base64 payload without the data URI prefix, format tag)
    """
    audio_data = (audio_data or "").strip()
    if not audio_data:
        raise InputValidationError("No audio data provided")

    mime, payload = split_data_uri(audio_data)
    if mime is not None and not mime.startswith("audio/"):
        raise InputValidationError(f"Unsupported audio type: {mime}")
    if not payload:
        raise InputValidationError("No audio data provided")
    return payload, audio_format(mime, file_name)
