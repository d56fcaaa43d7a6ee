"""Application configuration."""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_fast_model: str = "gpt-5-mini"
    openai_report_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str = "medium"
    openai_store: bool = False
    timezone: str = "UTC"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_timezone(raw: str | None) -> ZoneInfo:
    """Resolve a configured timezone name, falling back to UTC."""
    if raw is None or not raw.strip():
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(raw.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")
