"""Builds clients, pipeline and session from an AppConfig."""

import logging
import sqlite3

from weathernow.ai.gemini import gemini_enabled, make_client
from weathernow.ai.image_analyzer import ImageAnalyzer
from weathernow.ai.summarizer import GeminiSummarizer, NullSummarizer, Summarizer
from weathernow.config.schema import AppConfig
from weathernow.ingest.forecast_client import ForecastClient
from weathernow.ingest.geocoding_client import GeocodingClient
from weathernow.pipeline.weather_pipeline import WeatherPipeline
from weathernow.session.state import WeatherSession
from weathernow.storage.city_repo import SavedCityRepository

logger = logging.getLogger(__name__)


def build_geocoder(config: AppConfig) -> GeocodingClient:
    g = config.geocoding
    return GeocodingClient(
        base_url=g.base_url,
        timeout=g.timeout_seconds,
        language=g.language,
        suggestion_limit=g.suggestion_limit,
        min_query_length=g.min_query_length,
    )


def build_forecast(config: AppConfig) -> ForecastClient:
    return ForecastClient(
        base_url=config.forecast.base_url,
        timeout=config.forecast.timeout_seconds,
    )


def build_summarizer(config: AppConfig) -> Summarizer:
    """Return a Gemini summarizer when enabled and a key is present.

    Otherwise snapshots go out without a summary.
    """
    if not config.summary.enabled:
        return NullSummarizer()
    ok, reason = gemini_enabled(config.summary.api_key_env)
    if not ok:
        logger.warning("Summaries enabled but Gemini is unavailable: %s", reason)
        return NullSummarizer()
    return GeminiSummarizer(
        make_client(config.summary.api_key_env), config.summary.model
    )


def build_image_analyzer(config: AppConfig) -> ImageAnalyzer | None:
    ok, reason = gemini_enabled(config.images.api_key_env)
    if not ok:
        logger.info("Image analysis disabled: %s", reason)
        return None
    return ImageAnalyzer(make_client(config.images.api_key_env), config.images.model)


def build_session(
    config: AppConfig,
    conn: sqlite3.Connection,
    geocoder: GeocodingClient | None = None,
    forecast: ForecastClient | None = None,
    summarizer: Summarizer | None = None,
) -> WeatherSession:
    """Wire a WeatherSession. Explicit collaborators override the config."""
    geocoder = geocoder or build_geocoder(config)
    forecast = forecast or build_forecast(config)
    if summarizer is None:
        summarizer = build_summarizer(config)
    pipeline = WeatherPipeline(geocoder, forecast, summarizer)
    repo = SavedCityRepository(conn, config.session.storage_key)
    return WeatherSession(
        pipeline,
        geocoder,
        repo,
        unit=config.session.default_unit,
        debounce_seconds=config.session.debounce_ms / 1000,
    )
