"""
Request and response models.

Request bodies accept missing fields so that absent input is reported by the
dispatcher with a descriptive message instead of a generic validation error.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Signal = Literal["ai", "human", "neutral"]


class TextAnalysisRequest(BaseModel):
    text: Optional[str] = None


class ImageAnalysisRequest(BaseModel):
    imageData: Optional[str] = Field(None, description="Data URI or http(s) URL of the image")


class AudioAnalysisRequest(BaseModel):
    audioData: Optional[str] = Field(None, description="Base64 data URI of the audio clip")
    fileName: Optional[str] = None


class Indicator(BaseModel):
    """One piece of evidence cited by the model."""

    label: str
    detail: str = ""
    signal: Signal = "neutral"


class AnalysisResult(BaseModel):
    """
    Verdict for one analyzed piece of media.

    confidence is the likelihood (0-100) that the media is AI generated, or
    None when the model did not report a usable number.
    """

    verdict: str
    confidence: Optional[float] = Field(None, ge=0, le=100)
    summary: str = ""
    indicators: List[Indicator] = Field(default_factory=list)
