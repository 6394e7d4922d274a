"""Output formatters for snapshots and session state."""

import json
from dataclasses import asdict
from typing import Any

from weathernow.models.session import CityState, Failed, NotFetched, Pending, Ready
from weathernow.models.weather import WeatherSnapshot


def snapshot_to_dict(s: WeatherSnapshot) -> dict[str, Any]:
    data = asdict(s)
    data["unit"] = s.unit.value
    data["unit_symbol"] = s.unit.symbol
    return data


def city_state_to_dict(state: CityState) -> dict[str, Any]:
    """Tagged representation of a per-city state for JSON responses."""
    if isinstance(state, Ready):
        return {"status": "ready", "snapshot": snapshot_to_dict(state.snapshot)}
    if isinstance(state, Pending):
        previous = snapshot_to_dict(state.previous) if state.previous else None
        return {"status": "pending", "previous": previous}
    if isinstance(state, Failed):
        previous = snapshot_to_dict(state.previous) if state.previous else None
        return {
            "status": "failed",
            "error": str(state.error),
            "error_type": type(state.error).__name__,
            "previous": previous,
        }
    assert isinstance(state, NotFetched)
    return {"status": "not_fetched"}


def format_snapshot_text(s: WeatherSnapshot) -> str:
    """Plain text report for the terminal."""
    sym = s.unit.symbol
    lines = [
        f"=== {s.city} ({s.location.name}, {s.location.country}) ===",
        f"{s.weather_condition}",
        f"Temperature: {s.temperature:g}{sym} (feels like {s.apparent_temperature:g}{sym})",
        f"Wind: {s.wind_speed:g} km/h | Humidity: {s.humidity:g}% | "
        f"Precipitation: {s.precipitation:g} mm",
    ]
    if s.summary:
        lines.append("")
        lines.append(s.summary)
    return "\n".join(lines)


def format_snapshot_json(s: WeatherSnapshot) -> str:
    return json.dumps(snapshot_to_dict(s), indent=2)
