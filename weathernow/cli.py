"""CLI entry point for WeatherNow."""

import argparse
import asyncio
import base64
import logging
import mimetypes
from pathlib import Path

from weathernow.bootstrap import build_geocoder, build_image_analyzer, build_session
from weathernow.config.loader import (
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from weathernow.config.schema import AppConfig
from weathernow.errors import WeatherNowError
from weathernow.models.common import TemperatureUnit
from weathernow.models.session import Failed, Ready
from weathernow.reporting.formatters import format_snapshot_json, format_snapshot_text
from weathernow.reporting.health_checker import HealthChecker
from weathernow.storage.city_repo import SavedCityRepository
from weathernow.storage.database import connect, run_migrations

UNIT_CHOICES = [u.value for u in TemperatureUnit]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weathernow",
        description="Current weather lookup and AI image checker",
    )
    parser.add_argument("--config", default=None, help="Config YAML path")
    parser.add_argument("--db", default=None, help="SQLite DB path (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    # lookup
    lookup_p = sub.add_parser("lookup", help="Fetch current weather for a city")
    lookup_p.add_argument("city", help="City name")
    lookup_p.add_argument("--unit", choices=UNIT_CHOICES, default=None)
    lookup_p.add_argument("--json", action="store_true", help="Print JSON")

    # suggest
    suggest_p = sub.add_parser("suggest", help="Autocomplete a city name")
    suggest_p.add_argument("prefix", help="Partial city name")

    # cities list / remove / refresh
    cities_p = sub.add_parser("cities", help="Saved city operations")
    cities_sub = cities_p.add_subparsers(dest="cities_command")
    cities_sub.add_parser("list", help="List saved cities")
    remove_p = cities_sub.add_parser("remove", help="Remove a saved city")
    remove_p.add_argument("city", help="City name as saved")
    refresh_p = cities_sub.add_parser("refresh", help="Re-fetch all saved cities")
    refresh_p.add_argument("--unit", choices=UNIT_CHOICES, default=None)

    # config show / config set
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("keyvalue", help="key=value to set")

    # health
    sub.add_parser("health", help="Run health checks")

    # analyze-image
    image_p = sub.add_parser("analyze-image", help="Check if an image is AI-generated")
    image_p.add_argument("path", help="Image file")

    # serve
    serve_p = sub.add_parser("serve", help="Run the web backend")
    serve_p.add_argument("--host", default=None)
    serve_p.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.db:
        config = set_config_value(config, "storage.db_path", args.db)

    if args.command == "lookup":
        return asyncio.run(_cmd_lookup(config, args))
    elif args.command == "suggest":
        return asyncio.run(_cmd_suggest(config, args))
    elif args.command == "cities":
        return _cmd_cities(config, args)
    elif args.command == "config":
        return _cmd_config(config, args)
    elif args.command == "health":
        return _cmd_health(config)
    elif args.command == "analyze-image":
        return asyncio.run(_cmd_analyze_image(config, args))
    elif args.command == "serve":
        return _cmd_serve(config, args)
    else:
        parser.print_help()
        return 1


async def _cmd_lookup(config: AppConfig, args) -> int:
    conn = connect(config.storage.db_path)
    run_migrations(conn)
    try:
        session = build_session(config, conn)
        await session.start(warm=False)
        if args.unit:
            session.unit = TemperatureUnit(args.unit)
        state = await session.search(args.city)
        if state is None:
            print("Error: city name must not be empty")
            return 1
        if isinstance(state, Failed):
            print(f"Error: {state.error}")
            return 1
        assert isinstance(state, Ready)
        if args.json:
            print(format_snapshot_json(state.snapshot))
        else:
            print(format_snapshot_text(state.snapshot))
        return 0
    finally:
        conn.close()


async def _cmd_suggest(config: AppConfig, args) -> int:
    geocoder = build_geocoder(config)
    try:
        results = await geocoder.suggest(args.prefix)
    except WeatherNowError as e:
        print(f"Error: {e}")
        return 1
    for loc in results:
        print(f"{loc.name}, {loc.country} ({loc.latitude:.2f}, {loc.longitude:.2f})")
    return 0


def _cmd_cities(config: AppConfig, args) -> int:
    conn = connect(config.storage.db_path)
    run_migrations(conn)
    try:
        repo = SavedCityRepository(conn, config.session.storage_key)
        if args.cities_command == "list":
            cities = repo.load()
            if not cities:
                print("No saved cities")
            for city in cities:
                print(city)
            return 0
        elif args.cities_command == "remove":
            if not repo.remove(args.city):
                print(f"Not saved: {args.city}")
                return 1
            print(f"Removed {args.city}")
            return 0
        elif args.cities_command == "refresh":
            return asyncio.run(_refresh(config, conn, args.unit))
        else:
            print("Use: cities list | cities remove NAME | cities refresh")
            return 1
    except WeatherNowError as e:
        print(f"Error: {e}")
        return 1
    finally:
        conn.close()


async def _refresh(config: AppConfig, conn, unit: str | None) -> int:
    session = build_session(config, conn)
    await session.start(warm=False)
    if unit and TemperatureUnit(unit) != session.unit:
        states = await session.set_unit(TemperatureUnit(unit))
    else:
        states = await session.refresh_all()
    failures = 0
    for city, state in states.items():
        if isinstance(state, Ready):
            s = state.snapshot
            print(f"{city}: {s.temperature:g}{s.unit.symbol} {s.weather_condition}")
        elif isinstance(state, Failed):
            failures += 1
            print(f"{city}: FAILED ({state.error})")
    return 0 if failures == 0 else 1


def _cmd_config(config: AppConfig, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "set":
        kv = args.keyvalue
        if "=" not in kv:
            print("Error: use key=value format")
            return 1
        key, value = kv.split("=", 1)
        try:
            new_config = set_config_value(config, key.strip(), value.strip())
        except Exception as e:
            print(f"Error: {e}")
            return 1
        if args.config:
            save_config(new_config, args.config)
        print(f"Set {key.strip()} = {get_config_value(new_config, key.strip())}")
        return 0
    else:
        print("Use: config show | config set key=value")
        return 1


def _cmd_health(config: AppConfig) -> int:
    conn = connect(config.storage.db_path)
    run_migrations(conn)
    status = HealthChecker(conn, config).check()
    print(f"DB: {'OK' if status.db_connected else 'FAIL'}")
    print(f"Geocoding API: {'OK' if status.geocoding_api_reachable else 'FAIL'}")
    print(f"Forecast API: {'OK' if status.forecast_api_reachable else 'FAIL'}")
    print(f"Gemini: {'configured' if status.gemini_configured else 'not configured'}")
    print(f"Saved cities: {status.saved_city_count}")
    conn.close()
    return 0


async def _cmd_analyze_image(config: AppConfig, args) -> int:
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: no such file: {path}")
        return 1
    analyzer = build_image_analyzer(config)
    if analyzer is None:
        print(f"Error: set {config.images.api_key_env} to enable image analysis")
        return 1
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    uri = f"data:{mime};base64,{base64.b64encode(path.read_bytes()).decode()}"
    try:
        analysis = await analyzer.analyze(uri)
    except WeatherNowError as e:
        print(f"Error: {e}")
        return 1
    verdict = "AI-generated" if analysis.is_ai_generated else "Real photo"
    print(f"{verdict} ({analysis.confidence_score:.0%} confidence)")
    if analysis.rationale:
        print(analysis.rationale)
    return 0


def _cmd_serve(config: AppConfig, args) -> int:
    import uvicorn

    from weathernow.dashboard import create_app

    uvicorn.run(
        create_app(config),
        host=args.host or config.server.host,
        port=args.port or config.server.port,
    )
    return 0
