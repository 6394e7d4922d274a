"""Image analysis models."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class ImageAnalysis(BaseModel):
    is_ai_generated: bool
    confidence_score: float = Field(ge=0.0, le=1.0)
    rationale: str = ""


@dataclass(frozen=True)
class AnalyzedImage:
    url: str
    analysis: ImageAnalysis
