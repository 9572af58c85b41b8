"""Application configuration loaded from environment variables."""

import logging
import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def mask_database_url(db_url: str) -> str:
    """Hide the password part of a database URL for logging.

    Args:
        db_url: Database connection string

    Returns:
        Connection string with the password replaced by asterisks
    """
    return re.sub(r":[^:@/]+@", ":*****@", db_url)


class Settings(BaseSettings):
    """Application settings from environment variables and ``.env``.

    ``jwt_secret`` and ``radius_blocked_group`` have no defaults: the service
    refuses to start without them.
    """

    # Database
    database_url: str = "sqlite:///./data/guest_portal.db"
    sql_echo: bool = False

    # Token signing
    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # RADIUS
    radius_blocked_group: str = Field(..., min_length=1, max_length=64)
    guest_password_length: int = Field(10, ge=8, le=32)

    # SMTP Email Settings
    smtp_enabled: bool = True
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_tls_verify: bool = True  # False accepts self-signed relay certificates
    smtp_from_email: str = ""
    smtp_from_name: str = "Guest WiFi System"
    smtp_timeout: int = 10

    # Management user registration
    registration_enabled: bool = True
    registration_bootstrap_only: bool = False  # Only while no management users exist

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def smtp_implicit_tls(self) -> bool:
        """Whether the SMTP connection is TLS from the first byte (port 465)."""
        return self.smtp_use_ssl or self.smtp_port == 465

    @property
    def smtp_sender(self) -> str:
        """Envelope sender, falling back to the SMTP login name."""
        return self.smtp_from_email or self.smtp_username

    def get_cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get settings instance (cached after first call)."""
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.info(
            "⚙️  Settings loaded: db=%s, blocked_group=%s, smtp=%s",
            mask_database_url(_settings.database_url),
            _settings.radius_blocked_group,
            _settings.smtp_host or "unconfigured",
        )
    return _settings


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again.

    Returns
    -------
        New Settings instance
    """
    global _settings
    _settings = None
    return get_settings()
