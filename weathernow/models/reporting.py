"""Operational health models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStatus:
    db_connected: bool
    geocoding_api_reachable: bool
    forecast_api_reachable: bool
    gemini_configured: bool
    saved_city_count: int
