from pydantic_settings import BaseSettings, SettingsConfigDict

import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./admin_console.db"
    timezone: str = "Europe/Istanbul"
    log_level: str = "INFO"

    # JWT signing key for the admin session cookie
    secret_key: str = os.getenv("JWT_SECRET", "change-me-in-production-for-jwt")
    access_token_days: int = 7

    superadmin_email: str | None = None
    superadmin_password: str | None = None

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    pexels_api_key: str | None = None
    pexels_base_url: str = "https://api.pexels.com/v1"

    # Shared-mailbox REST gateway (folders, messages, attachments, send...)
    mail_api_base_url: str = "http://localhost:3000/api/admin/outlook"
    mail_api_token: str | None = None
    shared_mailboxes: list[str] = [
        "info@mkngroup.com.tr",
        "fulfillment@mkngroup.com.tr",
        "design@mkngroup.com.tr",
    ]

    # Applies to every outbound HTTP / AI call. There are no automatic retries.
    request_timeout_seconds: float = 30.0

    scheduler_enabled: bool = True
    scheduler_interval_minutes: int = 5

settings = Settings()
