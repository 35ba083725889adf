"""
Application configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_file_encoding = "utf-8"
    )

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./console.db", alias="DATABASE_URL")

    # Application
    app_name: str = Field(default="Operator Console", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")

    # Sessions
    session_cookie_name: str = Field(default="console.sid", alias="SESSION_COOKIE_NAME")
    session_ttl_hours: int = Field(default=24, alias="SESSION_TTL_HOURS")
    session_cookie_secure: bool = Field(default=False, alias="SESSION_COOKIE_SECURE")
    trust_proxy: bool = Field(default=False, alias="TRUST_PROXY")

    # Verification codes
    code_ttl_minutes: int = Field(default=10, alias="CODE_TTL_MINUTES")
    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")

    # Email relay
    email_api_url: str = Field(default="", alias="EMAIL_API_URL")
    email_api_key: str = Field(default="", alias="EMAIL_API_KEY")
    email_from: str = Field(default="no-reply@console.local", alias="EMAIL_FROM")

    @property
    def admin_email_allowlist(self) -> List[str]:
        """Provisioned admin addresses, lowercased. Empty means unrestricted."""
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
