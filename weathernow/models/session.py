"""Per-city cached state and user-facing notifications."""

from dataclasses import dataclass

from weathernow.errors import WeatherNowError
from weathernow.models.weather import WeatherSnapshot


@dataclass(frozen=True)
class NotFetched:
    pass


@dataclass(frozen=True)
class Pending:
    previous: WeatherSnapshot | None = None


@dataclass(frozen=True)
class Ready:
    snapshot: WeatherSnapshot


@dataclass(frozen=True)
class Failed:
    error: WeatherNowError
    previous: WeatherSnapshot | None = None


CityState = NotFetched | Pending | Ready | Failed


def last_snapshot(state: CityState) -> WeatherSnapshot | None:
    """Return the snapshot a city state can still display, if any."""
    if isinstance(state, Ready):
        return state.snapshot
    if isinstance(state, (Pending, Failed)):
        return state.previous
    return None


@dataclass(frozen=True)
class Notification:
    id: int
    title: str
    description: str
    variant: str = "destructive"
