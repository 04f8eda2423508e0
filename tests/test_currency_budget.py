"""Exchange rates, conversion and budget tracking."""

from __future__ import annotations

import httpx
import pytest

from miniapps_api.services import budget, currency


@pytest.fixture
def offline_rates(monkeypatch):
    async def _fail():
        raise httpx.ConnectError("provider unreachable")

    monkeypatch.setattr(currency, "_fetch_live_rates", _fail)


@pytest.fixture
def live_rates(monkeypatch):
    calls = []

    async def _fetch():
        calls.append(1)
        return {"USD": 1.0, "EUR": 0.5}

    monkeypatch.setattr(currency, "_fetch_live_rates", _fetch)
    return calls


class TestConvert:
    def test_cross_rate(self):
        rates = {"USD": 1.0, "EUR": 0.5, "GBP": 0.25}
        assert currency.convert(10, "EUR", "GBP", rates) == pytest.approx(5.0)

    @pytest.mark.parametrize("amount, source, target", [(-1, "USD", "EUR"), (1, "USD", "XXX"), (1, "ABC", "USD")])
    def test_invalid(self, amount, source, target):
        with pytest.raises(ValueError):
            currency.convert(amount, source, target, {"USD": 1.0, "EUR": 0.9})


class TestBudgetSummary:
    def test_summary(self):
        expenses = [
            {"amount": 30, "category": "Food"},
            {"amount": 45.5, "category": "Bills"},
            {"amount": 20, "category": "Food"},
        ]
        summary = budget.summarize_budget({"id": "b1", "total_amount": 200, "currency": "EUR"}, expenses)
        assert summary["total_spent"] == 95.5
        assert summary["remaining"] == 104.5
        assert summary["progress"] == 47.8
        assert summary["over_budget"] is False
        assert list(summary["by_category"].items()) == [("Food", 50.0), ("Bills", 45.5)]

    def test_overspent_caps_progress(self):
        summary = budget.summarize_budget({"total_amount": 10}, [{"amount": 25, "category": "Other"}])
        assert summary["progress"] == 100.0
        assert summary["over_budget"] is True
        assert summary["remaining"] == -15.0


class TestRateEndpoints:
    def test_fallback_when_provider_down(self, api_client, auth_headers, offline_rates):
        payload = api_client.get("/v1/currency/rates", headers=auth_headers).json()
        assert payload["source"] == "fallback"
        assert payload["base"] == "USD"
        assert payload["rates"]["EUR"] == currency.FALLBACK_RATES["EUR"]
        assert {item["code"] for item in payload["currencies"]} == set(currency.FALLBACK_RATES)

    def test_live_rates_are_cached_and_merged(self, api_client, auth_headers, live_rates):
        first = api_client.get("/v1/currency/rates", headers=auth_headers).json()
        api_client.get("/v1/currency/rates", headers=auth_headers)
        assert first["source"] == "live"
        assert first["rates"]["EUR"] == 0.5
        assert first["rates"]["GBP"] == currency.FALLBACK_RATES["GBP"]
        assert len(live_rates) == 1

    def test_convert(self, api_client, auth_headers, live_rates):
        response = api_client.get(
            "/v1/currency/convert", params={"amount": 10, "from": "eur", "to": "usd"}, headers=auth_headers
        )
        assert response.json() == {
            "amount": 10.0,
            "from": "EUR",
            "to": "USD",
            "result": 20.0,
            "rate": 2.0,
            "source": "live",
        }

    def test_convert_unknown_currency(self, api_client, auth_headers, offline_rates):
        response = api_client.get(
            "/v1/currency/convert", params={"amount": 1, "from": "USD", "to": "DOGE"}, headers=auth_headers
        )
        assert response.status_code == 400


class TestBudgetEndpoints:
    def _create(self, client, headers, **payload):
        body = {"name": "Groceries", "total_amount": 300, **payload}
        response = client.post("/v1/budgets", json=body, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()

    def test_create_with_expenses(self, api_client, auth_headers):
        created = self._create(api_client, auth_headers, currency="eur")
        assert created["currency"] == "EUR"
        assert created["period"] == "monthly"
        for description, amount, category in (("Market", 40, "Food"), ("Bus", 10.25, "Transport")):
            response = api_client.post(
                f"/v1/budgets/{created['id']}/expenses",
                json={"description": description, "amount": amount, "category": category, "date": "2024-05-02"},
                headers=auth_headers,
            )
            assert response.status_code == 200, response.text

        detail = api_client.get(f"/v1/budgets/{created['id']}", headers=auth_headers).json()
        assert len(detail["expenses"]) == 2
        assert detail["summary"]["total_spent"] == pytest.approx(50.25)
        assert detail["summary"]["expense_count"] == 2

        listing = api_client.get("/v1/budgets", headers=auth_headers).json()
        assert listing["items"][0]["summary"]["total_spent"] == pytest.approx(50.25)
        assert "custom" in listing["periods"]
        assert "Food" in listing["categories"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"total_amount": 0},
            {"currency": "XYZ"},
            {"period": "daily"},
            {"start_date": "2024-02-01", "end_date": "2024-01-01"},
        ],
    )
    def test_invalid_budgets(self, api_client, auth_headers, payload):
        body = {"name": "Trip", "total_amount": 100, **payload}
        assert api_client.post("/v1/budgets", json=body, headers=auth_headers).status_code == 400

    def test_invalid_expense(self, api_client, auth_headers):
        created = self._create(api_client, auth_headers)
        bad_category = api_client.post(
            f"/v1/budgets/{created['id']}/expenses",
            json={"description": "Lamp", "amount": 5, "category": "Furniture"},
            headers=auth_headers,
        )
        assert bad_category.status_code == 400
        missing_budget = api_client.post(
            "/v1/budgets/missing/expenses", json={"description": "Lamp", "amount": 5}, headers=auth_headers
        )
        assert missing_budget.status_code == 404

    def test_expense_defaults_to_today(self, api_client, auth_headers):
        created = self._create(api_client, auth_headers)
        today = api_client.get("/v1/header", headers=auth_headers).json()["today"]
        expense = api_client.post(
            f"/v1/budgets/{created['id']}/expenses", json={"description": "Coffee", "amount": 3}, headers=auth_headers
        ).json()
        assert expense["date"] == today
        assert expense["category"] == "Other"

    def test_patch_checks_dates_against_stored_values(self, api_client, auth_headers):
        created = self._create(api_client, auth_headers, start_date="2024-05-01", end_date="2024-05-31")
        path = f"/v1/budgets/{created['id']}"
        assert api_client.patch(path, json={"end_date": "2024-04-30"}, headers=auth_headers).status_code == 400
        assert api_client.patch(path, json={"start_date": "2024-06-01"}, headers=auth_headers).status_code == 400
        moved = api_client.patch(path, json={"end_date": "2024-06-30"}, headers=auth_headers)
        assert moved.status_code == 200
        assert moved.json()["end_date"] == "2024-06-30"
        assert moved.json()["start_date"] == "2024-05-01"

    def test_patch_delete_and_isolation(self, api_client, auth_headers, other_headers):
        created = self._create(api_client, auth_headers)
        expense = api_client.post(
            f"/v1/budgets/{created['id']}/expenses", json={"description": "Coffee", "amount": 3}, headers=auth_headers
        ).json()
        assert api_client.get(f"/v1/budgets/{created['id']}", headers=other_headers).status_code == 404

        patched = api_client.patch(f"/v1/budgets/{created['id']}", json={"total_amount": 50}, headers=auth_headers)
        assert patched.json()["total_amount"] == 50

        removed = api_client.delete(f"/v1/budgets/{created['id']}/expenses/{expense['id']}", headers=auth_headers)
        assert removed.json() == {"ok": True}
        assert api_client.delete(f"/v1/budgets/{created['id']}", headers=auth_headers).json() == {"ok": True}
        assert api_client.get(f"/v1/budgets/{created['id']}", headers=auth_headers).status_code == 404
