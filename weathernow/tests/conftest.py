"""Shared test fixtures."""

import json
import sqlite3
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from weathernow.errors import NotFoundError
from weathernow.ingest.forecast_client import ForecastClient
from weathernow.ingest.geocoding_client import GeocodingClient
from weathernow.models.common import TemperatureUnit
from weathernow.models.weather import Location, RawConditions
from weathernow.storage.city_repo import SavedCityRepository
from weathernow.storage.database import connect, run_migrations

FIXTURE_DIR = Path(__file__).parent / "fixtures"

LOCATIONS = {
    "London": Location("London", "United Kingdom", 51.50853, -0.12574),
    "Paris": Location("Paris", "France", 48.85341, 2.3488),
    "Tokyo": Location("Tokyo", "Japan", 35.6895, 139.69171),
}


def load_fixture(name: str) -> dict:
    with open(FIXTURE_DIR / name) as f:
        return json.load(f)


def make_conditions(
    temperature: float = 13.4, weather_code: int = 61
) -> RawConditions:
    return RawConditions(
        temperature=temperature,
        apparent_temperature=temperature - 1.5,
        wind_speed=14.8,
        humidity=78.0,
        precipitation=0.2,
        weather_code=weather_code,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURE_DIR


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    conn = connect(tmp_path / "test.db")
    run_migrations(conn)
    return conn


@pytest.fixture
def repo(db: sqlite3.Connection) -> SavedCityRepository:
    return SavedCityRepository(db)


@pytest.fixture
def geocoder() -> MagicMock:
    """Geocoder that knows LOCATIONS and nothing else."""
    mock = MagicMock(spec=GeocodingClient)

    async def resolve(city: str) -> Location:
        if city not in LOCATIONS:
            raise NotFoundError(city)
        return LOCATIONS[city]

    mock.resolve = AsyncMock(side_effect=resolve)
    mock.suggest = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def forecast() -> MagicMock:
    """Forecast client returning 13.4°C or 56.1°F depending on the unit."""
    mock = MagicMock(spec=ForecastClient)

    async def fetch_current(
        latitude: float, longitude: float, unit: TemperatureUnit
    ) -> RawConditions:
        temp = 56.1 if unit == TemperatureUnit.FAHRENHEIT else 13.4
        return make_conditions(temperature=temp)

    mock.fetch_current = AsyncMock(side_effect=fetch_current)
    return mock
