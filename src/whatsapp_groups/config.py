"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_WELCOME_TEMPLATE = (
    "مرحباً! هذا الجروب مخصص لتصميمك الجديد 🎨\n{group_name}"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_number: str = "201012345678@c.us"
    designers: str = "201098765432@c.us,201011111111@c.us"
    default_country_code: str = "20"
    whatsapp_gateway_url: str = "http://localhost:3001"
    whatsapp_gateway_api_key: str | None = None
    whatsapp_session: str = "default"
    gateway_events_token: str | None = None
    admin_token: str
    settling_seconds: float = 2.0
    promotion_max_attempts: int = 3
    promotion_backoff_seconds: float = 3.0
    create_fallback_enabled: bool = True
    group_create_options: dict[str, object] = {}
    welcome_template: str = DEFAULT_WELCOME_TEMPLATE
    database_path: str = "database.json"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        """Return true when group records should be stored in Supabase."""
        return bool(self.supabase_url and self.supabase_service_key)


def parse_designers(raw: str | None) -> list[str]:
    """Parse the comma-separated designer roster from env."""
    if raw is None:
        return []
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
