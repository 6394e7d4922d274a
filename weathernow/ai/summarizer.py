"""Narrative weather summaries from a remote language model."""

import logging
from typing import Protocol

from google import genai

from weathernow.errors import SummaryError
from weathernow.models.common import TemperatureUnit
from weathernow.models.weather import RawConditions

logger = logging.getLogger(__name__)

SUMMARY_TEMPLATE = (
    "You are a friendly weather assistant. Write a 2-3 sentence summary of the "
    "current weather in {city}. Be encouraging and give one practical piece of "
    "advice (what to wear, whether to bring an umbrella, and so on). Always "
    "write temperatures with the {symbol} symbol.\n\n"
    "Temperature: {temperature}{symbol}\n"
    "Feels like: {apparent_temperature}{symbol}\n"
    "Conditions: {condition}\n"
    "Wind speed: {wind_speed} km/h\n"
    "Humidity: {humidity}%\n"
    "Precipitation: {precipitation} mm\n"
)


class Summarizer(Protocol):
    async def summarize(
        self,
        city: str,
        unit: TemperatureUnit,
        conditions: RawConditions,
        condition_label: str,
    ) -> str: ...


class NullSummarizer:
    """Summarizer used when the narrative step is disabled."""

    async def summarize(
        self,
        city: str,
        unit: TemperatureUnit,
        conditions: RawConditions,
        condition_label: str,
    ) -> str:
        return ""


def build_prompt(
    city: str, unit: TemperatureUnit, conditions: RawConditions, condition_label: str
) -> str:
    return SUMMARY_TEMPLATE.format(
        city=city,
        symbol=unit.symbol,
        temperature=conditions.temperature,
        apparent_temperature=conditions.apparent_temperature,
        condition=condition_label,
        wind_speed=conditions.wind_speed,
        humidity=conditions.humidity,
        precipitation=conditions.precipitation,
    )


class GeminiSummarizer:
    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    async def summarize(
        self,
        city: str,
        unit: TemperatureUnit,
        conditions: RawConditions,
        condition_label: str,
    ) -> str:
        """Ask Gemini for a short summary. Any failure raises SummaryError."""
        prompt = build_prompt(city, unit, conditions, condition_label)
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.model, contents=prompt
            )
        except Exception as e:
            raise SummaryError(f"Gemini model {self.model} failed: {e}") from e

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise SummaryError(f"Gemini model {self.model} returned empty text")
        logger.debug("Summary for %s: %d chars", city, len(text))
        return text
