"""Tests for the FastAPI backend with mocked clients."""

import base64
import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from weathernow.ai.image_analyzer import ImageAnalyzer
from weathernow.config.schema import AppConfig
from weathernow.dashboard import create_app
from weathernow.errors import UpstreamError
from weathernow.models.weather import Location

PNG_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNGfake").decode()


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        storage={"db_path": str(tmp_path / "web.db")},
        session={"debounce_ms": 0},
    )


@pytest.fixture
def analyzer() -> ImageAnalyzer:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(
            text=json.dumps(
                {"is_ai_generated": True, "confidence_score": 0.9, "rationale": "Too perfect."}
            )
        )
    )
    return ImageAnalyzer(client, "test-model")


@pytest.fixture
def client(config, geocoder, forecast, analyzer):
    app = create_app(config, geocoder=geocoder, forecast=forecast, analyzer=analyzer)
    with TestClient(app) as c:
        yield c


class TestWeatherEndpoints:
    def test_empty_session(self, client: TestClient):
        data = client.get("/api/session").json()
        assert data["saved_cities"] == []
        assert data["active_city"] is None
        assert data["unit"] == "celsius"

    def test_search_success(self, client: TestClient):
        resp = client.post("/api/weather", json={"city": "London"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ready"
        assert body["snapshot"]["weather_condition"] == "Slight rain"
        assert body["snapshot"]["unit_symbol"] == "°C"

        session = client.get("/api/session").json()
        assert session["saved_cities"] == ["London"]
        assert session["active_city"] == "London"

    def test_search_not_found(self, client: TestClient):
        resp = client.post("/api/weather", json={"city": "Atlantis"})
        assert resp.status_code == 404
        session = client.get("/api/session").json()
        assert session["saved_cities"] == []
        assert len(session["notifications"]) == 1

    def test_search_upstream_error(self, client: TestClient, forecast):
        forecast.fetch_current = AsyncMock(side_effect=UpstreamError("503"))
        resp = client.post("/api/weather", json={"city": "London"})
        assert resp.status_code == 502

    def test_search_blank(self, client: TestClient):
        assert client.post("/api/weather", json={"city": " "}).status_code == 422

    def test_unit_change(self, client: TestClient):
        client.post("/api/weather", json={"city": "London"})
        client.post("/api/weather", json={"city": "Paris"})
        resp = client.put("/api/unit", json={"unit": "fahrenheit"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["unit"] == "fahrenheit"
        assert body["refreshed"]["London"]["snapshot"]["temperature"] == 56.1
        assert body["refreshed"]["Paris"]["snapshot"]["unit_symbol"] == "°F"

    def test_bad_unit(self, client: TestClient):
        assert client.put("/api/unit", json={"unit": "kelvin"}).status_code == 422

    def test_remove_and_activate(self, client: TestClient):
        client.post("/api/weather", json={"city": "London"})
        client.post("/api/weather", json={"city": "Paris"})

        resp = client.post("/api/cities/London/activate")
        assert resp.status_code == 200
        assert client.get("/api/session").json()["active_city"] == "London"

        resp = client.delete("/api/cities/London")
        assert resp.json() == {"saved_cities": ["Paris"], "active_city": "Paris"}
        assert client.delete("/api/cities/London").status_code == 404
        assert client.post("/api/cities/London/activate").status_code == 404

    def test_dismiss_notification(self, client: TestClient):
        client.post("/api/weather", json={"city": "Atlantis"})
        nid = client.get("/api/session").json()["notifications"][0]["id"]
        assert client.delete(f"/api/notifications/{nid}").status_code == 200
        assert client.delete(f"/api/notifications/{nid}").status_code == 404


class TestWarmLoad:
    def test_restart_restores_saved_cities(self, config, geocoder, forecast, analyzer):
        app = create_app(config, geocoder=geocoder, forecast=forecast, analyzer=analyzer)
        with TestClient(app) as c:
            c.post("/api/weather", json={"city": "Tokyo"})
            c.post("/api/weather", json={"city": "Paris"})

        app = create_app(config, geocoder=geocoder, forecast=forecast, analyzer=analyzer)
        with TestClient(app) as c:
            data = c.get("/api/session").json()
        assert data["saved_cities"] == ["Tokyo", "Paris"]
        assert data["active_city"] == "Paris"
        assert data["weather"]["Paris"]["status"] == "ready"
        assert data["weather"]["Tokyo"]["status"] == "not_fetched"


class TestSuggestionEndpoints:
    def test_direct_suggestions(self, client: TestClient, geocoder):
        geocoder.suggest = AsyncMock(
            return_value=[Location("London", "United Kingdom", 51.5, -0.12)]
        )
        resp = client.get("/api/suggestions", params={"q": "Lon"})
        assert resp.json() == [
            {"name": "London", "country": "United Kingdom", "latitude": 51.5, "longitude": -0.12}
        ]

    def test_direct_suggestions_upstream_error(self, client: TestClient, geocoder):
        geocoder.suggest = AsyncMock(side_effect=UpstreamError("down"))
        assert client.get("/api/suggestions", params={"q": "Lon"}).status_code == 502

    def test_query_updates_immediately(self, client: TestClient):
        resp = client.post("/api/query", json={"text": "Par"})
        assert resp.json() == {"query": "Par"}

    def test_select_suggestion(self, client: TestClient):
        resp = client.post(
            "/api/suggestions/select",
            json={"name": "Paris", "country": "France", "latitude": 48.85, "longitude": 2.35},
        )
        assert resp.status_code == 200
        session = client.get("/api/session").json()
        assert session["active_city"] == "Paris"
        assert session["suggestions"] == []


class TestImageEndpoints:
    def test_analyze_and_add(self, client: TestClient):
        resp = client.post(
            "/api/images/analyze",
            json={"photo_data_uri": PNG_URI, "add_to_dataset": True},
        )
        assert resp.status_code == 200
        assert resp.json()["is_ai_generated"] is True

        dataset = client.get("/api/images/dataset").json()
        assert dataset["counts"] == {"real": 0, "ai": 1}
        assert dataset["ai"][0]["url"] == PNG_URI

    def test_analyze_without_adding(self, client: TestClient):
        client.post("/api/images/analyze", json={"photo_data_uri": PNG_URI})
        assert client.get("/api/images/dataset").json()["counts"] == {"real": 0, "ai": 0}

    def test_invalid_image(self, client: TestClient):
        resp = client.post(
            "/api/images/analyze",
            json={"photo_data_uri": "data:text/plain;base64,aGVsbG8="},
        )
        assert resp.status_code == 400

    def test_not_configured(self, config, geocoder, forecast, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        app = create_app(config, geocoder=geocoder, forecast=forecast)
        with TestClient(app) as c:
            resp = c.post("/api/images/analyze", json={"photo_data_uri": PNG_URI})
        assert resp.status_code == 503


class TestHealth:
    def test_health(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(
            "weathernow.reporting.health_checker._reachable", lambda url, params: True
        )
        data = client.get("/api/health").json()
        assert data["db_connected"] is True
        assert data["geocoding_api_reachable"] is True
        assert data["forecast_api_reachable"] is True
