from typing import Any

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GLOBAL_SKIP_SOURCES = ["sms"]
KNOWN_SOURCES = {"sms", "email"}


def _normalize_sources(value: Any) -> list[str]:
    """Accept comma-separated string or list-like and normalize to lowercase sources."""
    if value is None or value == "":
        return []

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        parts = [str(part).strip() for part in value]
    else:
        return []

    return [part.lower() for part in parts if part and part.lower() in KNOWN_SOURCES]


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./ledgerscan.db"

    # Application
    ENV: str = "development"
    APP_NAME: str = "LedgerScan"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Transaction defaults
    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_CATEGORY: str = "other"
    UNKNOWN_MERCHANT: str = "Unknown Merchant"
    AUTO_NOTE_MARKER: str = "Auto-extracted from"

    # Scanning
    DUPLICATE_WINDOW_SECONDS: int = 30
    ALLOW_ZERO_AMOUNTS: bool = False
    GLOBAL_SKIP_SOURCES_RAW: str = Field(default="sms", alias="GLOBAL_SKIP_SOURCES")
    SEED_DEFAULT_RULES: bool = True
    SCAN_MAX_MESSAGES: int = 1000

    # Pydantic v2 compatible settings: read .env and ignore extra env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("DUPLICATE_WINDOW_SECONDS", "SCAN_MAX_MESSAGES")
    @classmethod
    def non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be zero or greater")
        return value

    @computed_field
    @property
    def global_skip_sources(self) -> list[str]:
        """Message sources that get the message-level skip pre-check."""
        return _normalize_sources(self.GLOBAL_SKIP_SOURCES_RAW)


def _validate_production() -> None:
    """Fail fast when running production with development defaults."""
    env = settings.ENV.lower()
    if env != "production":
        return

    if settings.DATABASE_URL.startswith("sqlite"):
        raise ValueError("Use PostgreSQL in production; sqlite is only for local/dev.")


settings = Settings()


_validate_production()
