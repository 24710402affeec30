"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_path: str = "nutrition-facts.json"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "kv_store"
    app_title: str = "Nutrition Facts Calculator"
    http_referer: str = "http://localhost"
    ai_temperature: float = 0.1
    ai_max_tokens: int = 1024
    ai_timeout_seconds: float = 60
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def uses_supabase(settings: Settings) -> bool:
    """Return True when both Supabase credentials are configured."""
    return bool(
        settings.supabase_url
        and settings.supabase_url.strip()
        and settings.supabase_service_key
        and settings.supabase_service_key.strip()
    )


def provider_headers(settings: Settings) -> dict[str, str]:
    """Attribution headers sent with every provider request."""
    return {"HTTP-Referer": settings.http_referer, "X-Title": settings.app_title}
