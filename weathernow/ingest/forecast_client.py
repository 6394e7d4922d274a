"""Open-Meteo forecast client for current conditions."""

import logging

import httpx

from weathernow.config.schema import FORECAST_BASE_URL
from weathernow.errors import UpstreamError
from weathernow.models.common import TemperatureUnit
from weathernow.models.weather import RawConditions

logger = logging.getLogger(__name__)

CURRENT_FIELDS = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
)


class ForecastClient:
    def __init__(self, base_url: str = FORECAST_BASE_URL, timeout: float = 10.0):
        self.base_url = base_url
        self.timeout = timeout

    async def fetch_current(
        self, latitude: float, longitude: float, unit: TemperatureUnit
    ) -> RawConditions:
        """Fetch current conditions at a coordinate in the requested unit.

        A single attempt; any failure raises UpstreamError.
        """
        url = f"{self.base_url}/forecast"
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_FIELDS),
            "temperature_unit": unit.value,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Forecast API error for %.4f,%.4f: %s", latitude, longitude, e
            )
            raise UpstreamError("Failed to fetch weather data.") from e
        except httpx.RequestError as e:
            logger.error(
                "Forecast request failed for %.4f,%.4f: %s", latitude, longitude, e
            )
            raise UpstreamError("Failed to fetch weather data.") from e
        except ValueError as e:
            raise UpstreamError("Invalid weather data response.") from e

        if not isinstance(data, dict):
            raise UpstreamError("Invalid weather data response.")

        return _parse_current(data)


def _parse_current(data: dict) -> RawConditions:
    current = data.get("current")
    if not isinstance(current, dict):
        raise UpstreamError("Weather data response has no current conditions.")
    try:
        return RawConditions(
            temperature=float(current["temperature_2m"]),
            apparent_temperature=float(current["apparent_temperature"]),
            wind_speed=float(current["wind_speed_10m"]),
            humidity=float(current["relative_humidity_2m"]),
            precipitation=float(current["precipitation"]),
            weather_code=int(current["weather_code"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"Malformed current conditions: {current!r}") from e
