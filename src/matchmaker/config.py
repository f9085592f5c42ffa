"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    twilio_account_sid: str
    twilio_auth_token: str
    twilio_whatsapp_number: str = "whatsapp:+14155238886"
    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str
    openai_model: str = "gpt-4.1"
    openai_base_url: str | None = None
    openai_temperature: float = 1.0
    public_base_url: str = "http://localhost:8000"
    match_sample_size: int = 3
    max_actions_per_turn: int = 4
    history_limit: int = 40
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_contact_id(raw: str | None) -> str | None:
    """Normalize an inbound sender address into a contact id."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned.lower().startswith("whatsapp:"):
        cleaned = cleaned[len("whatsapp:") :].strip()
    return cleaned or None
