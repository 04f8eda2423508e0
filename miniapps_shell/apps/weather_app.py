import html
import logging

import streamlit as st

from miniapps_shell.data import api_client, loaders
from miniapps_shell.data.api_client import ApiError
from miniapps_shell.state import session_slices

logger = logging.getLogger(__name__)

SLUG = "weather-info"

_LOCATION_LOADERS = (loaders.load_locations_cached,)


def _render_search():
    query = st.text_input("Search city", key="weather.search", placeholder="e.g. Lisbon")
    if len(query.strip()) < 2:
        return
    try:
        results = api_client.get("/v1/weather/search", params={"q": query.strip()}).get("items", [])
    except ApiError as exc:
        if exc.status_code == 503:
            st.info("Weather search is not configured on this server.")
        else:
            st.error(str(exc))
        return
    except RuntimeError as exc:
        logger.warning("Location search failed: %s", exc)
        st.error(str(exc))
        return
    if not results:
        st.caption("No matches.")
    for index, result in enumerate(results):
        cols = st.columns([4, 1, 1])
        cols[0].write(result["display"])
        if cols[1].button("View", key=f"weather.view.{index}"):
            session_slices.set_value(SLUG, "coords", (result["latitude"], result["longitude"], result["display"]))
            st.rerun()
        if cols[2].button("Save", key=f"weather.save.{index}"):
            payload = {
                "name": result["display"],
                "city": result.get("name"),
                "country": result.get("country"),
                "latitude": result["latitude"],
                "longitude": result["longitude"],
            }
            loaders.mutate("POST", "/v1/weather/locations", json=payload, invalidates=_LOCATION_LOADERS, success="Location saved")
            st.rerun()


def _render_saved(locations):
    if not locations:
        st.caption("No saved locations yet.")
        return
    for location in locations:
        cols = st.columns([4, 1, 1, 1])
        star = "⭐ " if location.get("is_default") else ""
        cols[0].write(f"{star}{location['name']}")
        if cols[1].button("View", key=f"weather.saved_view.{location['id']}"):
            session_slices.set_value(SLUG, "coords", (location["latitude"], location["longitude"], location["name"]))
            st.rerun()
        if not location.get("is_default") and cols[2].button("Default", key=f"weather.default.{location['id']}"):
            loaders.mutate("POST", f"/v1/weather/locations/{location['id']}/default", invalidates=_LOCATION_LOADERS)
            st.rerun()
        if cols[3].button("🗑️", key=f"weather.delete.{location['id']}"):
            loaders.mutate("DELETE", f"/v1/weather/locations/{location['id']}", invalidates=_LOCATION_LOADERS)
            st.rerun()


def _render_weather(ctx, lat, lon, label):
    try:
        payload = loaders.load_weather_cached(ctx.user_email, lat, lon)
    except ApiError as exc:
        if exc.status_code == 503:
            st.info("Weather is not configured on this server (missing OpenWeather API key).")
        else:
            logger.warning("Weather lookup failed: %s", exc)
            st.error("Weather provider unavailable. Try again shortly.")
        return
    except RuntimeError as exc:
        logger.warning("Weather lookup failed: %s", exc)
        st.error(str(exc))
        return
    current = payload.get("current") or {}
    st.markdown(
        "<div class='panel'>"
        f"<div class='small-label'>{html.escape(label)}</div>"
        f"<div class='timer-display' style='text-align:left'>{current.get('icon', '')} {current.get('temperature', '--')}°C</div>"
        f"<div>{html.escape(str(current.get('description') or '').capitalize())} · feels like {current.get('feels_like', '--')}°C</div>"
        f"<div class='small-label'>💧 {current.get('humidity', '--')}% · 💨 {current.get('wind_kmh', '--')} km/h · {current.get('pressure', '--')} hPa</div>"
        "</div>",
        unsafe_allow_html=True,
    )
    forecast = payload.get("forecast") or []
    if forecast:
        cols = st.columns(len(forecast))
        for col, day in zip(cols, forecast):
            with col:
                st.markdown(
                    f"<div class='stat-card' style='text-align:center'><div>{day['day']}</div>"
                    f"<div style='font-size:1.6rem'>{day['icon']}</div>"
                    f"<div>{day['temp_max']}° / {day['temp_min']}°</div></div>",
                    unsafe_allow_html=True,
                )


def render(ctx):
    st.markdown("<div class='section-title'>🌤️ Weather</div>", unsafe_allow_html=True)
    try:
        locations = loaders.load_locations_cached(ctx.user_email)
    except RuntimeError as exc:
        logger.warning("Unable to load saved locations: %s", exc)
        st.error(str(exc))
        locations = []

    coords = session_slices.get_value(SLUG, "coords")
    if not coords and locations:
        first = locations[0]
        coords = (first["latitude"], first["longitude"], first["name"])
    if coords:
        _render_weather(ctx, float(coords[0]), float(coords[1]), coords[2])
    else:
        st.info("Search for a city to see its weather.")

    left, right = st.columns(2)
    with left:
        _render_search()
    with right:
        st.markdown("<div class='small-label'>Saved locations</div>", unsafe_allow_html=True)
        _render_saved(locations)
