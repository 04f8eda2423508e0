from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(..., alias="DATABASE_URL")
    backend_session_secret: str = Field(..., alias="BACKEND_SESSION_SECRET")

    allowed_emails_raw: str = Field("", alias="ALLOWED_EMAILS")
    default_timezone: str = Field("UTC", alias="DEFAULT_TIMEZONE")

    openweather_api_key: str | None = Field(None, alias="OPENWEATHER_API_KEY")
    openweather_base_url: str = Field("https://api.openweathermap.org", alias="OPENWEATHER_BASE_URL")

    exchange_rates_url: str = Field("https://open.er-api.com/v6/latest/USD", alias="EXCHANGE_RATES_URL")
    exchange_rates_ttl_seconds: int = Field(3600, alias="EXCHANGE_RATES_TTL_SECONDS")

    http_timeout_seconds: float = Field(10.0, alias="HTTP_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_emails(self) -> List[str]:
        return [email.strip().lower() for email in self.allowed_emails_raw.split(",") if email.strip()]

    @property
    def weather_enabled(self) -> bool:
        return bool((self.openweather_api_key or "").strip())


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
