"""WeatherNow web backend: FastAPI app exposing the session to the browser UI."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from weathernow.ai.image_analyzer import ImageAnalyzer, ImageDataset
from weathernow.ai.summarizer import Summarizer
from weathernow.bootstrap import build_image_analyzer, build_session
from weathernow.config.schema import AppConfig
from weathernow.errors import (
    ImageAnalysisError,
    InvalidImageError,
    NotFoundError,
    UpstreamError,
)
from weathernow.ingest.forecast_client import ForecastClient
from weathernow.ingest.geocoding_client import GeocodingClient
from weathernow.models.common import TemperatureUnit
from weathernow.models.session import CityState, Failed
from weathernow.models.weather import Location
from weathernow.reporting.formatters import city_state_to_dict
from weathernow.reporting.health_checker import HealthChecker
from weathernow.session.state import WeatherSession
from weathernow.storage.database import connect, run_migrations

logger = logging.getLogger(__name__)


class WeatherRequest(BaseModel):
    city: str


class QueryUpdate(BaseModel):
    text: str


class UnitUpdate(BaseModel):
    unit: TemperatureUnit


class LocationPayload(BaseModel):
    name: str
    country: str = ""
    latitude: float
    longitude: float


class ImageRequest(BaseModel):
    photo_data_uri: str
    add_to_dataset: bool = False


def session_to_dict(session: WeatherSession) -> dict:
    return {
        "unit": session.unit.value,
        "unit_symbol": session.unit.symbol,
        "saved_cities": list(session.saved_cities),
        "active_city": session.active_city,
        "weather": {
            city: city_state_to_dict(state)
            for city, state in session.weather_by_city.items()
        },
        "query": session.query,
        "suggestions": [asdict(loc) for loc in session.suggestions],
        "notifications": [asdict(n) for n in session.notifications],
    }


def _raise_for_state(state: CityState) -> None:
    if isinstance(state, Failed):
        status = 404 if isinstance(state.error, NotFoundError) else 502
        raise HTTPException(status, str(state.error))


def create_app(
    config: AppConfig | None = None,
    *,
    geocoder: GeocodingClient | None = None,
    forecast: ForecastClient | None = None,
    summarizer: Summarizer | None = None,
    analyzer: ImageAnalyzer | None = None,
) -> FastAPI:
    """Build the app. Collaborators passed in replace the config-built ones."""
    config = config or AppConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        conn = connect(config.storage.db_path)
        run_migrations(conn)
        session = build_session(
            config, conn, geocoder=geocoder, forecast=forecast, summarizer=summarizer
        )
        app.state.conn = conn
        app.state.session = session
        app.state.analyzer = analyzer or build_image_analyzer(config)
        app.state.dataset = ImageDataset()
        await session.start()
        try:
            yield
        finally:
            await session.close()
            conn.close()

    app = FastAPI(title="WeatherNow", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _session(request: Request) -> WeatherSession:
        return request.app.state.session

    # ── Weather ─────────────────────────────────────────────────

    @app.get("/api/session")
    async def get_session(request: Request):
        return session_to_dict(_session(request))

    @app.post("/api/weather")
    async def search_weather(body: WeatherRequest, request: Request):
        """Resolve a city, save it and make it the active tab."""
        session = _session(request)
        state = await session.search(body.city)
        if state is None:
            raise HTTPException(422, "City name must not be empty")
        _raise_for_state(state)
        return {"city": body.city.strip(), **city_state_to_dict(state)}

    @app.put("/api/unit")
    async def change_unit(body: UnitUpdate, request: Request):
        """Switch units and refresh every saved city."""
        session = _session(request)
        states = await session.set_unit(body.unit)
        return {
            "unit": session.unit.value,
            "refreshed": {c: city_state_to_dict(s) for c, s in states.items()},
        }

    @app.post("/api/cities/{city}/activate")
    async def activate_city(city: str, request: Request):
        session = _session(request)
        try:
            state = await session.select_city(city)
        except KeyError:
            raise HTTPException(404, f"City not saved: {city}")
        return {"city": city, **city_state_to_dict(state)}

    @app.delete("/api/cities/{city}")
    async def remove_city(city: str, request: Request):
        session = _session(request)
        try:
            session.remove_city(city)
        except KeyError:
            raise HTTPException(404, f"City not saved: {city}")
        return {
            "saved_cities": list(session.saved_cities),
            "active_city": session.active_city,
        }

    # ── Autocomplete ────────────────────────────────────────────

    @app.get("/api/suggestions")
    async def get_suggestions(q: str, request: Request):
        """Immediate suggestions, bypassing the session's debounce."""
        session = _session(request)
        try:
            results = await session.geocoder.suggest(q)
        except UpstreamError as e:
            logger.error("Suggestion lookup failed for %r: %s", q, e)
            raise HTTPException(502, str(e))
        return [asdict(loc) for loc in results]

    @app.post("/api/query")
    async def update_query(body: QueryUpdate, request: Request):
        session = _session(request)
        session.update_query(body.text)
        return {"query": session.query}

    @app.post("/api/suggestions/select")
    async def select_suggestion(body: LocationPayload, request: Request):
        session = _session(request)
        state = await session.select_suggestion(Location(**body.model_dump()))
        if state is None:
            raise HTTPException(422, "City name must not be empty")
        _raise_for_state(state)
        return {"city": body.name, **city_state_to_dict(state)}

    # ── Notifications ───────────────────────────────────────────

    @app.delete("/api/notifications/{notification_id}")
    async def dismiss_notification(notification_id: int, request: Request):
        if not _session(request).dismiss_notification(notification_id):
            raise HTTPException(404, "Notification not found")
        return {"status": "dismissed"}

    # ── Image analysis ──────────────────────────────────────────

    @app.post("/api/images/analyze")
    async def analyze_image(body: ImageRequest, request: Request):
        analyzer: ImageAnalyzer | None = request.app.state.analyzer
        if analyzer is None:
            raise HTTPException(503, "Image analysis is not configured")
        try:
            analysis = await analyzer.analyze(body.photo_data_uri)
        except InvalidImageError as e:
            raise HTTPException(400, str(e))
        except ImageAnalysisError as e:
            raise HTTPException(502, str(e))
        if body.add_to_dataset:
            request.app.state.dataset.add(body.photo_data_uri, analysis)
        return analysis.model_dump()

    @app.get("/api/images/dataset")
    async def get_dataset(request: Request):
        dataset: ImageDataset = request.app.state.dataset
        return {
            "counts": dataset.counts(),
            "real": [
                {"url": i.url, **i.analysis.model_dump()} for i in dataset.real_photos
            ],
            "ai": [
                {"url": i.url, **i.analysis.model_dump()} for i in dataset.ai_photos
            ],
        }

    # ── Health ──────────────────────────────────────────────────

    @app.get("/api/health")
    def get_health():
        """DB, upstream API and Gemini status."""
        conn = connect(config.storage.db_path)
        try:
            run_migrations(conn)
            return asdict(HealthChecker(conn, config).check())
        finally:
            conn.close()

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8777)
