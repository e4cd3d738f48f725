"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from food_tracker.adapters.openfoodfacts_client import (
    DEFAULT_BASE_URL,
    DEFAULT_USER_AGENT,
)

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    supabase_url: str
    supabase_service_key: str
    telegram_allowed_user_ids: str | None = None
    telegram_allowed_username: str | None = None
    off_base_url: str = DEFAULT_BASE_URL
    off_user_agent: str = DEFAULT_USER_AGENT
    off_timeout_seconds: float = 10.0
    off_retry_attempts: int = 2
    off_retry_delay_seconds: float = 0.35
    session_store: Literal["memory", "supabase"] = "supabase"
    session_idle_timeout_seconds: int = 3600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_user_ids(raw: str | None) -> set[int] | None:
    """Parse allowed Telegram user IDs from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[int] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        if value.isdigit():
            ids.add(int(value))
    return ids or None


def normalize_username(raw: str | None) -> str | None:
    """Return a lowercase username without the leading ``@``."""
    if raw is None:
        return None
    cleaned = raw.strip().lstrip("@").lower()
    return cleaned or None
