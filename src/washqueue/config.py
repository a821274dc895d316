"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    telegram_bot_token: str | None = None
    machine_count: int = 5
    lead_window_seconds: int = 120
    tick_interval_seconds: float = 1.0
    default_wash_minutes: int = 50
    max_wash_minutes: int = 240
    facility_timezone: str = "UTC"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_telegram_token(raw: str | None) -> str | None:
    """Return the bot token, or None when Telegram alerts are disabled."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "-"}:
        return None
    return cleaned
