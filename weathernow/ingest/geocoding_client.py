"""Open-Meteo geocoding client: exact city lookup and prefix suggestions."""

import logging

import httpx

from weathernow.config.schema import GEOCODING_BASE_URL
from weathernow.errors import NotFoundError, UpstreamError
from weathernow.models.weather import Location

logger = logging.getLogger(__name__)


class GeocodingClient:
    def __init__(
        self,
        base_url: str = GEOCODING_BASE_URL,
        timeout: float = 10.0,
        language: str = "en",
        suggestion_limit: int = 5,
        min_query_length: int = 2,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.language = language
        self.suggestion_limit = suggestion_limit
        self.min_query_length = min_query_length

    async def resolve(self, city_name: str) -> Location:
        """Return the best match for a city name.

        Raises NotFoundError when the API has no results for it.
        """
        results = await self._search(city_name, count=1)
        if not results:
            raise NotFoundError(city_name)
        return _parse_location(results[0])

    async def suggest(self, prefix: str) -> list[Location]:
        """Return up to ``suggestion_limit`` candidates for partial input.

        Inputs shorter than ``min_query_length`` return [] without a request.
        """
        prefix = prefix.strip()
        if len(prefix) < self.min_query_length:
            return []
        results = await self._search(prefix, count=self.suggestion_limit)
        return [_parse_location(r) for r in results[: self.suggestion_limit]]

    async def _search(self, name: str, count: int) -> list[dict]:
        url = f"{self.base_url}/search"
        params = {
            "name": name,
            "count": count,
            "language": self.language,
            "format": "json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Geocoding API error for name=%s: %s", name, e)
            raise UpstreamError(f"Failed to fetch geocoding data for {name}") from e
        except httpx.RequestError as e:
            logger.error("Geocoding request failed for name=%s: %s", name, e)
            raise UpstreamError(f"Failed to fetch geocoding data for {name}") from e
        except ValueError as e:
            raise UpstreamError(f"Invalid geocoding response for {name}") from e

        if not isinstance(data, dict):
            raise UpstreamError(f"Invalid geocoding response for {name}")

        # The API omits "results" entirely when nothing matches
        return data.get("results") or []


def _parse_location(raw: dict) -> Location:
    try:
        return Location(
            name=raw["name"],
            country=raw.get("country", ""),
            latitude=float(raw["latitude"]),
            longitude=float(raw["longitude"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"Malformed geocoding result: {raw!r}") from e
