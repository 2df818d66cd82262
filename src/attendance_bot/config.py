"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_MIN_CONTACT_DIGITS = 8


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    photo_bucket: str = "photos"
    whatsapp_access_token: str
    whatsapp_phone_number_id: str
    whatsapp_verify_token: str
    whatsapp_api_base_url: str = "https://graph.facebook.com/v21.0"
    timezone: str = "Asia/Jakarta"
    broadcast_min_delay_ms: int = 3000
    broadcast_max_delay_ms: int = 7000
    welcome_photo_request_delay_seconds: float = 5.0
    photo_request_ttl_hours: float | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_contact(raw: str | None) -> str | None:
    """Normalize a phone number to international digits, or None if empty."""
    if raw is None:
        return None
    cleaned = "".join(ch for ch in raw.strip() if ch not in " -()")
    if not cleaned:
        return None
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    elif cleaned.startswith("0"):
        cleaned = "62" + cleaned[1:]
    if not cleaned.isdigit() or len(cleaned) < _MIN_CONTACT_DIGITS:
        raise ValueError(f"Invalid contact number: {raw!r}")
    return cleaned
