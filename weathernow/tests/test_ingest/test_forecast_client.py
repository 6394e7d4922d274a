"""Tests for the forecast client with mocked httpx."""

import asyncio
import json
from pathlib import Path

import httpx
import pytest
import respx

from weathernow.errors import UpstreamError
from weathernow.ingest.forecast_client import ForecastClient
from weathernow.models.common import TemperatureUnit

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"
FORECAST_URL = "https://test-forecast.example.com/forecast"


@pytest.fixture
def client() -> ForecastClient:
    return ForecastClient(base_url="https://test-forecast.example.com")


@pytest.fixture
def london_current() -> dict:
    with open(FIXTURE_DIR / "forecast_london.json") as f:
        return json.load(f)


class TestFetchCurrent:
    @respx.mock
    def test_success(self, client: ForecastClient, london_current: dict):
        respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json=london_current)
        )
        raw = asyncio.run(
            client.fetch_current(51.5, -0.12, TemperatureUnit.CELSIUS)
        )
        assert raw.temperature == 13.4
        assert raw.apparent_temperature == 11.9
        assert raw.humidity == 78
        assert raw.precipitation == 0.2
        assert raw.wind_speed == 14.8
        assert raw.weather_code == 61

    @respx.mock
    def test_request_params(self, client: ForecastClient, london_current: dict):
        route = respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json=london_current)
        )
        asyncio.run(client.fetch_current(51.5, -0.12, TemperatureUnit.FAHRENHEIT))

        params = route.calls.last.request.url.params
        assert params["latitude"] == "51.5"
        assert params["longitude"] == "-0.12"
        assert params["temperature_unit"] == "fahrenheit"
        fields = params["current"].split(",")
        assert set(fields) == {
            "temperature_2m",
            "relative_humidity_2m",
            "apparent_temperature",
            "precipitation",
            "weather_code",
            "wind_speed_10m",
        }

    @respx.mock
    def test_server_error_not_retried(self, client: ForecastClient):
        route = respx.get(FORECAST_URL).mock(return_value=httpx.Response(503))
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))
        assert route.call_count == 1

    @respx.mock
    def test_transport_error(self, client: ForecastClient):
        respx.get(FORECAST_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))

    @respx.mock
    def test_missing_current(self, client: ForecastClient):
        respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json={"latitude": 0.0})
        )
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))

    @respx.mock
    def test_incomplete_current(self, client: ForecastClient):
        respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json={"current": {"temperature_2m": 3.0}})
        )
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))

    @respx.mock
    def test_invalid_json(self, client: ForecastClient):
        respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, content=b"<html>")
        )
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))

    @respx.mock
    def test_array_body(self, client: ForecastClient):
        respx.get(FORECAST_URL).mock(
            return_value=httpx.Response(200, json=["unexpected"])
        )
        with pytest.raises(UpstreamError):
            asyncio.run(client.fetch_current(0.0, 0.0, TemperatureUnit.CELSIUS))
