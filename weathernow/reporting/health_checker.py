"""Health checker: DB connectivity, API reachability, Gemini configuration."""

import sqlite3

import httpx

from weathernow.ai.gemini import gemini_enabled
from weathernow.config.schema import AppConfig
from weathernow.models.reporting import HealthStatus
from weathernow.storage.city_repo import SavedCityRepository


class HealthChecker:
    def __init__(self, conn: sqlite3.Connection, config: AppConfig):
        self.conn = conn
        self.config = config

    def check(self) -> HealthStatus:
        db_ok = self._check_db()
        return HealthStatus(
            db_connected=db_ok,
            geocoding_api_reachable=self._check_geocoding(),
            forecast_api_reachable=self._check_forecast(),
            gemini_configured=gemini_enabled(self.config.summary.api_key_env)[0],
            saved_city_count=self._saved_city_count() if db_ok else 0,
        )

    def _check_db(self) -> bool:
        try:
            self.conn.execute("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    def _check_geocoding(self) -> bool:
        return _reachable(
            f"{self.config.geocoding.base_url}/search",
            {"name": "London", "count": 1},
        )

    def _check_forecast(self) -> bool:
        return _reachable(
            f"{self.config.forecast.base_url}/forecast",
            {"latitude": 51.5, "longitude": -0.13, "current": "temperature_2m"},
        )

    def _saved_city_count(self) -> int:
        repo = SavedCityRepository(self.conn, self.config.session.storage_key)
        return len(repo.load())


def _reachable(url: str, params: dict) -> bool:
    try:
        resp = httpx.get(url, params=params, timeout=10.0)
        return resp.status_code == 200
    except httpx.HTTPError:
        return False
