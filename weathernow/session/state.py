"""Session state machine: saved cities, active tab, cached weather, autocomplete.

Everything here runs on one asyncio loop. Mutations happen between awaits, so
no locking is needed; per-city loading is expressed as a Pending state.
"""

import asyncio
import logging

from weathernow.errors import StorageError, WeatherNowError
from weathernow.ingest.geocoding_client import GeocodingClient
from weathernow.models.common import TemperatureUnit
from weathernow.models.session import (
    CityState,
    Failed,
    NotFetched,
    Notification,
    Pending,
    Ready,
    last_snapshot,
)
from weathernow.models.weather import Location, WeatherSnapshot
from weathernow.pipeline.weather_pipeline import WeatherPipeline
from weathernow.session.debounce import Debouncer
from weathernow.storage.city_repo import SavedCityRepository

logger = logging.getLogger(__name__)

FAILURE_TITLE = "Failed to get weather"


class WeatherSession:
    def __init__(
        self,
        pipeline: WeatherPipeline,
        geocoder: GeocodingClient,
        repo: SavedCityRepository,
        unit: TemperatureUnit = TemperatureUnit.CELSIUS,
        debounce_seconds: float = 0.3,
    ):
        self.pipeline = pipeline
        self.geocoder = geocoder
        self.repo = repo
        self.unit = unit
        self.saved_cities: list[str] = []
        self.active_city: str | None = None
        self.weather_by_city: dict[str, CityState] = {}
        self.query = ""
        self.suggestions: list[Location] = []
        self.notifications: list[Notification] = []
        self._debouncer = Debouncer(debounce_seconds)
        self._suggest_seq = 0
        self._notification_seq = 0

    # --- Lifecycle ---

    async def start(self, warm: bool = True) -> None:
        """Load saved cities and warm-load the most recent one without toasts."""
        self.saved_cities = self.repo.load()
        self.weather_by_city = {c: NotFetched() for c in self.saved_cities}
        if not self.saved_cities or not warm:
            return
        self.active_city = self.saved_cities[-1]
        logger.info(
            "Loaded %d saved cities, warm-loading %s",
            len(self.saved_cities), self.active_city,
        )
        await self._resolve(self.active_city, activate=True, notify=False)

    async def close(self) -> None:
        self._debouncer.cancel()
        await self._debouncer.drain()

    # --- Weather ---

    async def search(self, city: str) -> CityState | None:
        """Resolve a city and, on success, save it and make it active.

        Blank input is ignored and returns None.
        """
        city = city.strip()
        if not city:
            return None
        return await self._resolve(city, activate=True, notify=True)

    async def select_city(self, city: str) -> CityState:
        """Switch to a saved city's tab, fetching it if it was never loaded."""
        if city not in self.saved_cities:
            raise KeyError(f"City not saved: {city}")
        self.active_city = city
        state = self.weather_by_city.get(city, NotFetched())
        if isinstance(state, NotFetched):
            return await self._resolve(city, activate=True, notify=True)
        return state

    def remove_city(self, city: str) -> None:
        """Forget a saved city and move the active selection if needed."""
        if city not in self.saved_cities:
            raise KeyError(f"City not saved: {city}")
        try:
            self.repo.remove(city)
        except StorageError:
            logger.exception("Could not persist removal of %s", city)
        self.saved_cities.remove(city)
        self.weather_by_city.pop(city, None)
        if self.active_city == city:
            self.active_city = self.saved_cities[-1] if self.saved_cities else None

    async def set_unit(self, unit: TemperatureUnit) -> dict[str, CityState]:
        """Change the unit and re-fetch every saved city concurrently.

        Each city succeeds or fails on its own; a failed city keeps its
        previous snapshot. The active selection does not change.
        """
        if unit == self.unit:
            return {}
        self.unit = unit
        cities = list(self.saved_cities)
        logger.info("Unit changed to %s, refreshing %d cities", unit, len(cities))
        states = await asyncio.gather(
            *(self._resolve(c, activate=False, notify=True) for c in cities)
        )
        return dict(zip(cities, states, strict=True))

    async def refresh_all(self) -> dict[str, CityState]:
        """Re-fetch every saved city in the current unit."""
        cities = list(self.saved_cities)
        states = await asyncio.gather(
            *(self._resolve(c, activate=False, notify=True) for c in cities)
        )
        return dict(zip(cities, states, strict=True))

    def is_loading(self, city: str) -> bool:
        return isinstance(self.weather_by_city.get(city), Pending)

    def snapshot(self, city: str) -> WeatherSnapshot | None:
        state = self.weather_by_city.get(city)
        if state is None:
            return None
        return last_snapshot(state)

    async def _resolve(self, city: str, activate: bool, notify: bool) -> CityState:
        previous = self.snapshot(city)
        self.weather_by_city[city] = Pending(previous)

        try:
            resolution = await self.pipeline.run(city, self.unit)
            snapshot, error = resolution.snapshot, resolution.error
        except Exception as e:
            logger.exception("Unexpected failure resolving %s", city)
            snapshot = None
            error = WeatherNowError(f"Failed to get weather for {city}: {e}")

        if snapshot is None:
            error = error or WeatherNowError(f"No weather for {city}")
            state: CityState = Failed(error, previous)
            if city in self.saved_cities:
                self.weather_by_city[city] = state
            else:
                self.weather_by_city.pop(city, None)
            if notify:
                self._notify(FAILURE_TITLE, str(error))
            return state

        state = Ready(snapshot)
        if city not in self.saved_cities and not activate:
            # Removed while a background refresh was in flight
            self.weather_by_city.pop(city, None)
            return state
        self.weather_by_city[city] = state
        if city not in self.saved_cities:
            self.saved_cities.append(city)
            try:
                self.repo.append(city)
            except StorageError:
                logger.exception("Could not persist saved city %s", city)
        if activate:
            self.active_city = city
        return state

    # --- Autocomplete ---

    def update_query(self, text: str) -> None:
        """Record a keystroke and (re)arm the suggestion timer."""
        self.query = text
        self._debouncer.schedule(lambda: self._fetch_suggestions(text))

    async def select_suggestion(self, location: Location) -> CityState | None:
        self._debouncer.cancel()
        # Invalidate any suggestion request already in flight
        self._suggest_seq += 1
        self.suggestions = []
        self.query = location.name
        return await self.search(location.name)

    async def wait_for_suggestions(self) -> None:
        await self._debouncer.drain()

    async def _fetch_suggestions(self, text: str) -> None:
        self._suggest_seq += 1
        seq = self._suggest_seq
        try:
            results = await self.geocoder.suggest(text)
        except WeatherNowError as e:
            logger.warning("Suggestions failed for %r: %s", text, e)
            results = []
        # A newer request has been issued; its answer wins
        if seq != self._suggest_seq:
            return
        self.suggestions = results

    # --- Notifications ---

    def dismiss_notification(self, notification_id: int) -> bool:
        before = len(self.notifications)
        self.notifications = [
            n for n in self.notifications if n.id != notification_id
        ]
        return len(self.notifications) != before

    def _notify(self, title: str, description: str) -> Notification:
        self._notification_seq += 1
        notification = Notification(self._notification_seq, title, description)
        self.notifications.append(notification)
        return notification
