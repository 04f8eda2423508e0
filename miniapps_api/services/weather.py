from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import httpx

from miniapps_api.settings import get_settings

logger = logging.getLogger(__name__)

FORECAST_DAYS = 5
MIN_QUERY_LENGTH = 2
SEARCH_LIMIT = 5


class WeatherNotConfigured(RuntimeError):
    pass


class WeatherProviderError(RuntimeError):
    pass


_ICON_RULES = [
    (("clear",), "☀️"),
    (("cloud",), "☁️"),
    (("rain", "drizzle"), "🌧️"),
    (("snow",), "❄️"),
    (("thunder",), "⛈️"),
    (("mist", "fog"), "🌫️"),
]


def weather_icon(description: str | None) -> str:
    text = (description or "").lower()
    for keywords, icon in _ICON_RULES:
        if any(keyword in text for keyword in keywords):
            return icon
    return "🌤️"


def wind_kmh(speed_mps) -> int:
    return round(float(speed_mps or 0) * 3.6)


def location_display(item: dict) -> str:
    parts = [item.get("name"), item.get("state"), item.get("country")]
    return ", ".join(str(part) for part in parts if part)


def _local_time(timestamp, offset_seconds: int) -> datetime:
    return datetime.fromtimestamp(int(timestamp), tz=timezone(timedelta(seconds=int(offset_seconds or 0))))


def summarize_current(payload: dict) -> dict:
    main = payload.get("main") or {}
    weather = (payload.get("weather") or [{}])[0]
    description = weather.get("description") or ""
    return {
        "location": payload.get("name"),
        "country": (payload.get("sys") or {}).get("country"),
        "temperature": round(float(main.get("temp") or 0)),
        "feels_like": round(float(main.get("feels_like") or 0)),
        "humidity": main.get("humidity"),
        "pressure": main.get("pressure"),
        "wind_kmh": wind_kmh((payload.get("wind") or {}).get("speed")),
        "description": description,
        "icon": weather_icon(description),
    }


def summarize_forecast(entries: list[dict], utc_offset_seconds: int = 0, days: int = FORECAST_DAYS) -> list[dict]:
    """Collapse 3-hour forecast entries into one row per local day.

    Each day keeps the highest and lowest temperature seen and the first
    description reported for that day.
    """
    by_day: dict = {}
    for entry in entries:
        local = _local_time(entry.get("dt") or 0, utc_offset_seconds)
        key = local.date()
        main = entry.get("main") or {}
        temp_max = float(main.get("temp_max", main.get("temp", 0)) or 0)
        temp_min = float(main.get("temp_min", main.get("temp", 0)) or 0)
        description = ((entry.get("weather") or [{}])[0]).get("description") or ""
        if key not in by_day:
            by_day[key] = {
                "date": key.isoformat(),
                "day": local.strftime("%a"),
                "temp_max": temp_max,
                "temp_min": temp_min,
                "description": description,
                "icon": weather_icon(description),
            }
            continue
        day = by_day[key]
        day["temp_max"] = max(day["temp_max"], temp_max)
        day["temp_min"] = min(day["temp_min"], temp_min)
    result = []
    for key in sorted(by_day)[:days]:
        day = by_day[key]
        day["temp_max"] = round(day["temp_max"])
        day["temp_min"] = round(day["temp_min"])
        result.append(day)
    return result


def _api_key() -> str:
    settings = get_settings()
    if not settings.weather_enabled:
        raise WeatherNotConfigured("OPENWEATHER_API_KEY not configured")
    return settings.openweather_api_key.strip()


async def _get_json(path: str, params: dict):
    settings = get_settings()
    url = f"{settings.openweather_base_url.rstrip('/')}{path}"
    try:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as exc:
        logger.warning("Weather provider returned %s for %s", exc.response.status_code, path)
        raise WeatherProviderError(f"Weather provider error {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.warning("Weather provider request failed for %s: %s", path, exc)
        raise WeatherProviderError("Weather provider unavailable") from exc


async def search_locations(query: str) -> list[dict]:
    text = (query or "").strip()
    if len(text) < MIN_QUERY_LENGTH:
        return []
    payload = await _get_json("/geo/1.0/direct", {"q": text, "limit": SEARCH_LIMIT, "appid": _api_key()})
    results = []
    for item in payload or []:
        entry = {
            "name": item.get("name"),
            "state": item.get("state"),
            "country": item.get("country"),
            "latitude": item.get("lat"),
            "longitude": item.get("lon"),
        }
        entry["display"] = location_display(entry)
        results.append(entry)
    return results


async def get_weather(latitude: float, longitude: float) -> dict:
    key = _api_key()
    params = {"lat": latitude, "lon": longitude, "units": "metric", "appid": key}
    current = await _get_json("/data/2.5/weather", params)
    forecast = await _get_json("/data/2.5/forecast", params)
    offset = (forecast.get("city") or {}).get("timezone", current.get("timezone", 0))
    return {
        "current": summarize_current(current),
        "forecast": summarize_forecast(forecast.get("list") or [], offset),
    }
