"""Saved-city list persisted as a JSON array under a single storage key."""

import json
import logging
import sqlite3

from weathernow.config.schema import SAVED_CITIES_KEY
from weathernow.errors import StorageError
from weathernow.storage import local_storage

logger = logging.getLogger(__name__)


class SavedCityRepository:
    """Ordered, duplicate-free list of saved city names.

    The list is read from storage once, on the first ``load()``; afterwards
    the in-memory copy is authoritative and every mutation is written through.
    """

    def __init__(self, conn: sqlite3.Connection, key: str = SAVED_CITIES_KEY):
        self.conn = conn
        self.key = key
        self._cities: list[str] | None = None

    @property
    def cities(self) -> list[str]:
        return list(self.load())

    def load(self) -> list[str]:
        """Return the saved cities, treating unreadable state as empty."""
        if self._cities is None:
            try:
                self._cities = self._read()
            except StorageError as e:
                logger.warning("Discarding saved cities under %r: %s", self.key, e)
                self._cities = []
        return list(self._cities)

    def append(self, city: str) -> bool:
        """Add a city at the end. Returns False if it was already saved."""
        cities = self.load()
        if city in cities:
            return False
        cities.append(city)
        self._write(cities)
        return True

    def remove(self, city: str) -> bool:
        """Remove a city. Returns False if it was not saved."""
        cities = self.load()
        if city not in cities:
            return False
        cities.remove(city)
        self._write(cities)
        return True

    def _read(self) -> list[str]:
        try:
            raw = local_storage.get_item(self.conn, self.key)
        except sqlite3.Error as e:
            raise StorageError(f"Could not read {self.key}: {e}") from e
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt JSON under {self.key}") from e
        if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
            raise StorageError(f"Expected a list of city names under {self.key}")
        # Tolerate duplicates written by older clients
        return list(dict.fromkeys(data))

    def _write(self, cities: list[str]) -> None:
        # The in-memory list stays updated even if persisting it fails
        self._cities = cities
        try:
            local_storage.set_item(self.conn, self.key, json.dumps(cities))
        except sqlite3.Error as e:
            raise StorageError(f"Could not write {self.key}: {e}") from e
