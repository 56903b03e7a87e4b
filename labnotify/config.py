"""Service configuration loaded from the process environment."""

import os
from typing import Literal

from pydantic import BaseModel

from labnotify.exceptions import ConfigurationError


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime settings for the webhook and dispatch endpoints."""

    telegram_bot_token: str | None = None
    telegram_api_base: str = "https://api.telegram.org"
    telegram_webhook_url: str | None = None

    data_store: Literal["supabase", "memory"] = "supabase"
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    hospital_name: str = "Girum Hospital"
    hospital_contact: str = "+251-11-XXX-XXXX"
    country_code: str = "251"

    # /start matches the raw argument unless this is switched on
    normalize_start_phone: bool = False

    http_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org"),
            telegram_webhook_url=os.getenv("TELEGRAM_WEBHOOK_URL") or None,
            data_store=os.getenv("LABNOTIFY_DATA_STORE", "supabase").lower(),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
            hospital_name=os.getenv("LABNOTIFY_HOSPITAL_NAME", "Girum Hospital"),
            hospital_contact=os.getenv("LABNOTIFY_HOSPITAL_CONTACT", "+251-11-XXX-XXXX"),
            country_code=os.getenv("LABNOTIFY_COUNTRY_CODE", "251"),
            normalize_start_phone=_env_flag("LABNOTIFY_NORMALIZE_START_PHONE"),
            http_timeout=float(os.getenv("LABNOTIFY_HTTP_TIMEOUT", "10")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def require_telegram(self) -> str:
        """Return the bot token, or raise if it is not configured."""
        if not self.telegram_bot_token:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN environment variable is required")
        return self.telegram_bot_token

    def require_supabase(self) -> tuple[str, str]:
        """Return the Supabase URL and service key, or raise if either is missing."""
        if not self.supabase_url or not self.supabase_service_role_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables are required")
        return self.supabase_url.rstrip("/"), self.supabase_service_role_key
