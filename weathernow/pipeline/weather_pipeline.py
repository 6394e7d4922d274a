"""Weather resolution pipeline: city name -> coordinates -> conditions -> summary."""

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from weathernow.ai.summarizer import Summarizer
from weathernow.errors import NotFoundError, SummaryError, UpstreamError
from weathernow.ingest.forecast_client import ForecastClient
from weathernow.ingest.geocoding_client import GeocodingClient
from weathernow.ingest.weather_codes import label
from weathernow.models.common import TemperatureUnit, utc_now_iso
from weathernow.models.weather import Location, WeatherSnapshot

logger = logging.getLogger(__name__)


class PipelineStage(StrEnum):
    IDLE = "idle"
    RESOLVING_LOCATION = "resolving-location"
    FETCHING_CONDITIONS = "fetching-conditions"
    SUMMARIZING = "summarizing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Resolution:
    """Outcome of one pipeline run, including every stage it passed through."""

    city: str
    unit: TemperatureUnit
    stages: list[PipelineStage] = field(default_factory=lambda: [PipelineStage.IDLE])
    location: Location | None = None
    snapshot: WeatherSnapshot | None = None
    error: NotFoundError | UpstreamError | None = None

    @property
    def stage(self) -> PipelineStage:
        return self.stages[-1]

    @property
    def ok(self) -> bool:
        return self.stage == PipelineStage.COMPLETE

    def advance(self, stage: PipelineStage) -> None:
        self.stages.append(stage)


class WeatherPipeline:
    def __init__(
        self,
        geocoder: GeocodingClient,
        forecast: ForecastClient,
        summarizer: Summarizer | None = None,
    ):
        self.geocoder = geocoder
        self.forecast = forecast
        self.summarizer = summarizer

    async def run(self, city: str, unit: TemperatureUnit) -> Resolution:
        """Resolve current weather for one city in one unit.

        Geocoding and forecast errors end the run in FAILED with the error
        attached. A failed summary is dropped and the run still completes.
        """
        city = city.strip()
        resolution = Resolution(city=city, unit=unit)
        if not city:
            return resolution

        # 1. GEOCODE
        resolution.advance(PipelineStage.RESOLVING_LOCATION)
        try:
            location = await self.geocoder.resolve(city)
        except (NotFoundError, UpstreamError) as e:
            logger.warning("Could not resolve %r: %s", city, e)
            resolution.error = e
            resolution.advance(PipelineStage.FAILED)
            return resolution
        resolution.location = location

        # 2. CURRENT CONDITIONS
        resolution.advance(PipelineStage.FETCHING_CONDITIONS)
        try:
            conditions = await self.forecast.fetch_current(
                location.latitude, location.longitude, unit
            )
        except UpstreamError as e:
            logger.warning("Could not fetch conditions for %r: %s", city, e)
            resolution.error = e
            resolution.advance(PipelineStage.FAILED)
            return resolution

        condition_label = label(conditions.weather_code)

        # 3. SUMMARY (best effort)
        summary: str | None = None
        if self.summarizer is not None:
            resolution.advance(PipelineStage.SUMMARIZING)
            try:
                summary = await self.summarizer.summarize(
                    city, unit, conditions, condition_label
                ) or None
            except SummaryError as e:
                logger.warning("Summary skipped for %r: %s", city, e)
            except Exception:
                logger.warning("Summarizer crashed for %r", city, exc_info=True)

        resolution.snapshot = WeatherSnapshot(
            city=city,
            unit=unit,
            location=location,
            temperature=conditions.temperature,
            apparent_temperature=conditions.apparent_temperature,
            wind_speed=conditions.wind_speed,
            humidity=conditions.humidity,
            precipitation=conditions.precipitation,
            weather_condition=condition_label,
            weather_code=conditions.weather_code,
            fetched_at=utc_now_iso(),
            summary=summary,
        )
        resolution.advance(PipelineStage.COMPLETE)
        logger.info(
            "Resolved %s (%s, %.2f,%.2f): %s%s %s",
            city, location.country, location.latitude, location.longitude,
            conditions.temperature, unit.symbol, condition_label,
        )
        return resolution
