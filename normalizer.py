"""
Response normalization.

Models are asked for bare JSON but regularly wrap it in markdown fences, add
prose around it, leave trailing commas or emit raw control characters. The
same extraction and repair steps are applied to every media type:

1. take ``choices[0].message.content`` from the gateway envelope
2. drop code fences, trim
3. slice from the first ``{`` or ``[`` through the last ``}``
4. parse; on failure strip trailing commas and control characters, parse once more
5. round a numeric ``confidence`` to two decimals

``validate_result`` then coerces the parsed object into an ``AnalysisResult``.
"""

import json
import math
import re
from typing import Any, List, Optional

from errors import EmptyResponse, InvalidAnalysis, MalformedJson, NoJsonFound
from models import AnalysisResult, Indicator

FENCE_JSON_RE = re.compile(r"```json\s*", re.IGNORECASE)
FENCE_RE = re.compile(r"```\s*")
JSON_START_RE = re.compile(r"[{\[]")
TRAILING_COMMA_OBJECT_RE = re.compile(r",\s*}")
TRAILING_COMMA_ARRAY_RE = re.compile(r",\s*]")
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

SIGNALS = {"ai", "human", "neutral"}


def extract_content(envelope: Any) -> Optional[str]:
    """Return choices[0].message.content, or None when any level is missing."""
    try:
        content = envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


def strip_code_fences(text: str) -> str:
    return FENCE_RE.sub("", FENCE_JSON_RE.sub("", text)).strip()


def slice_json(text: str) -> str:
    match = JSON_START_RE.search(text)
    end = text.rfind("}")
    if match is None or end == -1:
        raise NoJsonFound()
    return text[match.start():end + 1]


def repair_json(text: str) -> str:
    text = TRAILING_COMMA_OBJECT_RE.sub("}", text)
    text = TRAILING_COMMA_ARRAY_RE.sub("]", text)
    return CONTROL_CHARS_RE.sub("", text)


def round_confidence(value: float) -> float:
    """
    Round half up to two decimals.

    Values too large to scale (or NaN) are returned unchanged.
    """
    try:
        scaled = float(value) * 100
    except OverflowError:
        return value
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled + 0.5) / 100


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_reply(content: str) -> Any:
    """Extract and parse the JSON value embedded in a model reply."""
    cleaned = slice_json(strip_code_fences(content))
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(repair_json(cleaned))
    except json.JSONDecodeError as e:
        raise MalformedJson(f"Malformed JSON in response: {e.msg}")


def normalize_reply(envelope: Any) -> Any:
    """
    Turn a gateway envelope into the parsed analysis object.

    Only the confidence is touched: a numeric value is rounded to two
    decimals, anything else is left as the model sent it.

    Raises:
        EmptyResponse: no message content in the envelope
        NoJsonFound: no ``{``/``[`` or no closing ``}`` in the content
        MalformedJson: the content did not parse even after repair
    """
    content = extract_content(envelope)
    if not content:
        raise EmptyResponse()

    result = parse_reply(content)
    if isinstance(result, dict):
        confidence = result.get("confidence")
        if _is_number(confidence):
            result["confidence"] = round_confidence(confidence)
    return result


def _coerce_confidence(value: Any) -> Optional[float]:
    if not _is_number(value):
        return None
    try:
        value = float(value)
    except OverflowError:
        # integer beyond float range
        return 100.0 if value > 0 else 0.0
    if not math.isfinite(value):
        return None
    return min(100.0, max(0.0, value))


def _coerce_indicators(value: Any) -> List[Indicator]:
    if not isinstance(value, list):
        return []
    indicators = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("label"), str):
            continue
        detail = item.get("detail")
        signal = item.get("signal")
        indicators.append(Indicator(
            label=item["label"],
            detail=detail if isinstance(detail, str) else "",
            signal=signal if isinstance(signal, str) and signal in SIGNALS else "neutral",
        ))
    return indicators


def validate_result(result: Any) -> AnalysisResult:
    """
    Coerce a parsed reply into an AnalysisResult.

    A missing verdict is an error; every other field falls back to a
    neutral value (null confidence, empty summary, bad indicators dropped).
    """
    if not isinstance(result, dict):
        raise InvalidAnalysis("Response is not a JSON object")

    verdict = result.get("verdict")
    if not isinstance(verdict, str) or not verdict.strip():
        raise InvalidAnalysis("Response has no verdict")

    summary = result.get("summary")
    return AnalysisResult(
        verdict=verdict.strip(),
        confidence=_coerce_confidence(result.get("confidence")),
        summary=summary if isinstance(summary, str) else "",
        indicators=_coerce_indicators(result.get("indicators")),
    )


def normalize(envelope: Any) -> AnalysisResult:
    return validate_result(normalize_reply(envelope))
