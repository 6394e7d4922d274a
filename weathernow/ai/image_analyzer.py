"""AI-or-not image analysis through Gemini, plus the in-memory dataset.

The classification itself is opaque: one multimodal call that returns a
verdict, a confidence score and a short rationale as JSON.
"""

import base64
import binascii
import logging
import re

from google import genai
from google.genai import types
from pydantic import ValidationError

from weathernow.errors import ImageAnalysisError, InvalidImageError
from weathernow.models.image import AnalyzedImage, ImageAnalysis

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.S)

ANALYSIS_PROMPT = (
    "You are an expert in detecting AI-generated images. Analyze the attached "
    "image and decide whether it was generated by an AI model or is a real "
    "photograph. Respond with JSON containing is_ai_generated (boolean), "
    "confidence_score (number between 0 and 1) and rationale (one or two "
    "sentences explaining the decision)."
)


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (mime_type, raw bytes)."""
    match = DATA_URI_RE.match(uri.strip())
    if match is None:
        raise InvalidImageError("Expected a base64 data URI")
    mime = match.group("mime").lower()
    if not mime.startswith("image/"):
        raise InvalidImageError(
            "Please upload an image file (e.g., PNG, JPG, GIF)."
        )
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError("Could not read the selected image file.") from e
    if not data:
        raise InvalidImageError("Could not read the selected image file.")
    return mime, data


class ImageAnalyzer:
    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    async def analyze(self, photo_data_uri: str) -> ImageAnalysis:
        mime, data = parse_data_uri(photo_data_uri)
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=data, mime_type=mime),
                    ANALYSIS_PROMPT,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                ),
            )
        except Exception as e:
            logger.error("Image analysis call failed: %s", e)
            raise ImageAnalysisError(
                "There was an error analyzing your image. Please try again."
            ) from e

        try:
            return ImageAnalysis.model_validate_json(resp.text or "")
        except ValidationError as e:
            logger.warning("Unparseable image analysis response: %r", resp.text)
            raise ImageAnalysisError("The image analysis response was invalid.") from e


class ImageDataset:
    """Analyzed images partitioned into real and AI-generated, newest first."""

    def __init__(self) -> None:
        self.real_photos: list[AnalyzedImage] = []
        self.ai_photos: list[AnalyzedImage] = []

    def add(self, url: str, analysis: ImageAnalysis) -> AnalyzedImage:
        item = AnalyzedImage(url=url, analysis=analysis)
        if analysis.is_ai_generated:
            self.ai_photos.insert(0, item)
        else:
            self.real_photos.insert(0, item)
        return item

    def counts(self) -> dict[str, int]:
        return {"real": len(self.real_photos), "ai": len(self.ai_photos)}
