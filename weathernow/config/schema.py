"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

from weathernow.models.common import TemperatureUnit

GEOCODING_BASE_URL = "https://geocoding-api.open-meteo.com/v1"
FORECAST_BASE_URL = "https://api.open-meteo.com/v1"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
SAVED_CITIES_KEY = "weathernow.saved-cities"


class GeocodingConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = GEOCODING_BASE_URL
    timeout_seconds: float = Field(default=10.0, gt=0.0)
    language: str = "en"
    suggestion_limit: int = Field(default=5, ge=1, le=100)
    min_query_length: int = Field(default=2, ge=1)


class ForecastConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = FORECAST_BASE_URL
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class SummaryConfig(BaseModel):
    model_config = {"extra": "forbid"}

    enabled: bool = False
    model: str = DEFAULT_GEMINI_MODEL
    api_key_env: str = "GEMINI_API_KEY"


class ImageAnalysisConfig(BaseModel):
    model_config = {"extra": "forbid"}

    model: str = DEFAULT_GEMINI_MODEL
    api_key_env: str = "GEMINI_API_KEY"


class SessionConfig(BaseModel):
    model_config = {"extra": "forbid"}

    default_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    debounce_ms: int = Field(default=300, ge=0)
    storage_key: str = SAVED_CITIES_KEY


class StorageConfig(BaseModel):
    model_config = {"extra": "forbid"}

    db_path: str = "data/weathernow.db"


class ServerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    host: str = "127.0.0.1"
    port: int = Field(default=8777, ge=1, le=65535)


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    geocoding: GeocodingConfig = GeocodingConfig()
    forecast: ForecastConfig = ForecastConfig()
    summary: SummaryConfig = SummaryConfig()
    images: ImageAnalysisConfig = ImageAnalysisConfig()
    session: SessionConfig = SessionConfig()
    storage: StorageConfig = StorageConfig()
    server: ServerConfig = ServerConfig()
