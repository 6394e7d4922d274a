"""Geocoding and current-conditions data models."""

from dataclasses import dataclass

from weathernow.models.common import TemperatureUnit


@dataclass(frozen=True)
class Location:
    name: str
    country: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class RawConditions:
    temperature: float
    apparent_temperature: float
    wind_speed: float  # km/h
    humidity: float  # percent
    precipitation: float  # mm
    weather_code: int


@dataclass(frozen=True)
class WeatherSnapshot:
    city: str
    unit: TemperatureUnit
    location: Location
    temperature: float
    apparent_temperature: float
    wind_speed: float
    humidity: float
    precipitation: float
    weather_condition: str
    weather_code: int
    fetched_at: str
    summary: str | None = None
