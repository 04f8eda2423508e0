"""Weather proxy and saved locations."""

from __future__ import annotations

import pytest

from miniapps_api.services import weather
from miniapps_api.settings import reset_settings

JAN_1_2024 = 1704067200


def _entry(offset_hours, temp_min, temp_max, description="clear sky"):
    return {
        "dt": JAN_1_2024 + offset_hours * 3600,
        "main": {"temp_min": temp_min, "temp_max": temp_max},
        "weather": [{"description": description}],
    }


@pytest.fixture
def weather_key(monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")
    reset_settings()


@pytest.fixture
def fake_provider(monkeypatch):
    calls = []

    async def _get_json(path, params):
        calls.append((path, params))
        if path == "/geo/1.0/direct":
            return [{"name": "Lisbon", "country": "PT", "lat": 38.72, "lon": -9.14}]
        if path == "/data/2.5/weather":
            return {
                "name": "Lisbon",
                "sys": {"country": "PT"},
                "main": {"temp": 18.6, "feels_like": 17.2, "humidity": 60, "pressure": 1015},
                "wind": {"speed": 5},
                "weather": [{"description": "light rain"}],
                "timezone": 0,
            }
        return {"city": {"timezone": 0}, "list": [_entry(0, 10, 14), _entry(3, 9, 16), _entry(24, 11, 13, "snow")]}

    monkeypatch.setattr(weather, "_get_json", _get_json)
    return calls


class TestWeatherHelpers:
    @pytest.mark.parametrize(
        "description, icon",
        [
            ("clear sky", "☀️"),
            ("broken clouds", "☁️"),
            ("light drizzle", "🌧️"),
            ("heavy snow", "❄️"),
            ("thunderstorm", "⛈️"),
            ("mist", "🌫️"),
            ("fog", "🌫️"),
            ("haze", "🌤️"),
            ("smoke", "🌤️"),
            ("", "🌤️"),
        ],
    )
    def test_icon(self, description, icon):
        assert weather.weather_icon(description) == icon

    def test_wind_conversion(self):
        assert weather.wind_kmh(10) == 36
        assert weather.wind_kmh(None) == 0

    def test_location_display_skips_blanks(self):
        assert weather.location_display({"name": "Porto", "state": None, "country": "PT"}) == "Porto, PT"

    def test_forecast_collapses_days(self):
        days = weather.summarize_forecast([_entry(0, 10, 14), _entry(3, 9, 16), _entry(24, 11, 13, "snow")])
        assert [(day["date"], day["day"], day["temp_min"], day["temp_max"]) for day in days] == [
            ("2024-01-01", "Mon", 9, 16),
            ("2024-01-02", "Tue", 11, 13),
        ]
        assert days[1]["icon"] == "❄️"

    def test_forecast_uses_local_offset(self):
        days = weather.summarize_forecast([_entry(0, 1, 2)], utc_offset_seconds=-3600)
        assert days[0]["date"] == "2023-12-31"

    def test_forecast_limit(self):
        entries = [_entry(24 * offset, 1, 2) for offset in range(8)]
        assert len(weather.summarize_forecast(entries)) == weather.FORECAST_DAYS


class TestWeatherEndpoints:
    def test_not_configured(self, api_client, auth_headers):
        response = api_client.get("/v1/weather", params={"lat": 38.7, "lon": -9.1}, headers=auth_headers)
        assert response.status_code == 503
        search = api_client.get("/v1/weather/search", params={"q": "Lisbon"}, headers=auth_headers)
        assert search.status_code == 503

    def test_coordinates_are_validated(self, api_client, auth_headers):
        response = api_client.get("/v1/weather", params={"lat": 120, "lon": 0}, headers=auth_headers)
        assert response.status_code == 422

    def test_current_and_forecast(self, api_client, auth_headers, weather_key, fake_provider):
        payload = api_client.get("/v1/weather", params={"lat": 38.72, "lon": -9.14}, headers=auth_headers).json()
        current = payload["current"]
        assert current["temperature"] == 19
        assert current["wind_kmh"] == 18
        assert current["icon"] == "🌧️"
        assert len(payload["forecast"]) == 2
        assert all(params["appid"] == "test-key" for _, params in fake_provider)

    def test_search(self, api_client, auth_headers, weather_key, fake_provider):
        items = api_client.get("/v1/weather/search", params={"q": "lis"}, headers=auth_headers).json()["items"]
        assert items == [
            {"name": "Lisbon", "state": None, "country": "PT", "latitude": 38.72, "longitude": -9.14, "display": "Lisbon, PT"}
        ]
        assert api_client.get("/v1/weather/search", params={"q": "l"}, headers=auth_headers).json()["items"] == []

    def test_provider_failure_maps_to_bad_gateway(self, api_client, auth_headers, weather_key, monkeypatch):
        async def _boom(path, params):
            raise weather.WeatherProviderError("Weather provider unavailable")

        monkeypatch.setattr(weather, "_get_json", _boom)
        response = api_client.get("/v1/weather", params={"lat": 1, "lon": 1}, headers=auth_headers)
        assert response.status_code == 502


class TestLocations:
    def _add(self, client, headers, name, **extra):
        body = {"name": name, "latitude": 38.7, "longitude": -9.1, **extra}
        response = client.post("/v1/weather/locations", json=body, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()

    def test_first_location_becomes_default(self, api_client, auth_headers):
        home = self._add(api_client, auth_headers, "Home")
        work = self._add(api_client, auth_headers, "Work")
        assert home["is_default"] is True
        assert work["is_default"] is False

        assert api_client.post(f"/v1/weather/locations/{work['id']}/default", headers=auth_headers).json() == {"ok": True}
        items = api_client.get("/v1/weather/locations", headers=auth_headers).json()["items"]
        assert [(item["name"], item["is_default"]) for item in items] == [("Work", True), ("Home", False)]

    def test_out_of_range_coordinates(self, api_client, auth_headers):
        response = api_client.post(
            "/v1/weather/locations", json={"name": "Nowhere", "latitude": 91, "longitude": 0}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_delete_and_isolation(self, api_client, auth_headers, other_headers):
        home = self._add(api_client, auth_headers, "Home")
        assert api_client.post(f"/v1/weather/locations/{home['id']}/default", headers=other_headers).status_code == 404
        assert api_client.delete(f"/v1/weather/locations/{home['id']}", headers=other_headers).status_code == 404
        assert api_client.delete(f"/v1/weather/locations/{home['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.get("/v1/weather/locations", headers=auth_headers).json()["items"] == []
