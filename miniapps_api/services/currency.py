from __future__ import annotations

import logging
import time

import httpx

from miniapps_api.settings import get_settings

logger = logging.getLogger(__name__)

CURRENCIES = [
    {"code": "USD", "name": "US Dollar", "symbol": "$"},
    {"code": "EUR", "name": "Euro", "symbol": "€"},
    {"code": "GBP", "name": "British Pound", "symbol": "£"},
    {"code": "JPY", "name": "Japanese Yen", "symbol": "¥"},
    {"code": "CAD", "name": "Canadian Dollar", "symbol": "C$"},
    {"code": "AUD", "name": "Australian Dollar", "symbol": "A$"},
    {"code": "CHF", "name": "Swiss Franc", "symbol": "Fr"},
    {"code": "CNY", "name": "Chinese Yuan", "symbol": "¥"},
    {"code": "INR", "name": "Indian Rupee", "symbol": "₹"},
    {"code": "MXN", "name": "Mexican Peso", "symbol": "$"},
    {"code": "NZD", "name": "New Zealand Dollar", "symbol": "NZ$"},
    {"code": "SEK", "name": "Swedish Krona", "symbol": "kr"},
    {"code": "NOK", "name": "Norwegian Krone", "symbol": "kr"},
    {"code": "DKK", "name": "Danish Krone", "symbol": "kr"},
    {"code": "SGD", "name": "Singapore Dollar", "symbol": "S$"},
    {"code": "HKD", "name": "Hong Kong Dollar", "symbol": "HK$"},
    {"code": "KRW", "name": "South Korean Won", "symbol": "₩"},
    {"code": "BRL", "name": "Brazilian Real", "symbol": "R$"},
    {"code": "ZAR", "name": "South African Rand", "symbol": "R"},
    {"code": "RUB", "name": "Russian Ruble", "symbol": "₽"},
    {"code": "TRY", "name": "Turkish Lira", "symbol": "₺"},
    {"code": "THB", "name": "Thai Baht", "symbol": "฿"},
    {"code": "PLN", "name": "Polish Zloty", "symbol": "zł"},
    {"code": "AED", "name": "UAE Dirham", "symbol": "د.إ"},
    {"code": "SAR", "name": "Saudi Riyal", "symbol": "﷼"},
]
CURRENCY_CODES = [item["code"] for item in CURRENCIES]

FALLBACK_RATES = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.50,
    "CAD": 1.36,
    "AUD": 1.53,
    "CHF": 0.88,
    "CNY": 7.24,
    "INR": 83.12,
    "MXN": 17.05,
    "NZD": 1.62,
    "SEK": 10.55,
    "NOK": 10.85,
    "DKK": 6.87,
    "SGD": 1.34,
    "HKD": 7.83,
    "KRW": 1308.50,
    "BRL": 4.97,
    "ZAR": 18.65,
    "RUB": 92.50,
    "TRY": 32.15,
    "THB": 35.20,
    "PLN": 3.98,
    "AED": 3.67,
    "SAR": 3.75,
}

_CACHE: dict = {"rates": None, "fetched_at": 0.0, "source": None}


def convert(amount: float, from_code: str, to_code: str, rates: dict) -> float:
    if amount is None or amount < 0:
        raise ValueError("amount must be zero or positive")
    for code in (from_code, to_code):
        if code not in rates or not rates[code]:
            raise ValueError(f"Unknown currency: {code!r}")
    return amount / rates[from_code] * rates[to_code]


def clear_cache() -> None:
    _CACHE.update({"rates": None, "fetched_at": 0.0, "source": None})


async def _fetch_live_rates() -> dict:
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        response = await client.get(settings.exchange_rates_url)
        response.raise_for_status()
        payload = response.json()
    rates = payload.get("rates") or {}
    if not isinstance(rates, dict) or "USD" not in rates:
        raise ValueError("Exchange rate payload has no USD-based rates")
    return {code: float(rates[code]) for code in CURRENCY_CODES if code in rates}


async def get_rates() -> dict:
    """USD based rates, cached; the fallback table is served when the provider is down."""
    settings = get_settings()
    age = time.monotonic() - _CACHE["fetched_at"]
    if _CACHE["rates"] is not None and age < settings.exchange_rates_ttl_seconds:
        return {"base": "USD", "rates": _CACHE["rates"], "source": _CACHE["source"]}
    try:
        live = await _fetch_live_rates()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Exchange rate fetch failed, using fallback table: %s", exc)
        rates, source = dict(FALLBACK_RATES), "fallback"
    else:
        # Codes the provider omits stay covered by the fallback.
        rates, source = {**FALLBACK_RATES, **live}, "live"
    _CACHE.update({"rates": rates, "fetched_at": time.monotonic(), "source": source})
    return {"base": "USD", "rates": rates, "source": source}
