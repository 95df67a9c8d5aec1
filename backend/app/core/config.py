from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar
import json
from pathlib import Path


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'vendors.db'}"

    # Redis connection URL for caching; "disabled" switches to a no-op client
    REDIS_URL: str = "redis://localhost:6379/0"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_ALL: bool = False

    LOG_LEVEL: str = "INFO"

    # Prices on packages and counter offers are stored in this currency
    DEFAULT_CURRENCY: str = "INR"

    # Notifications containing this phrase are cleared once an offline
    # settlement is acknowledged.
    SETTLEMENT_MARKER: str = "settle payment personally"

    # Month calendars are cached per vendor; TTL in seconds
    CALENDAR_CACHE_TTL: int = 300
    REQUEST_QUEUE_CACHE_TTL: int = 120

    # Pending/countered requests older than this may be expired by an admin
    REQUEST_EXPIRY_DAYS: int = 30

    VENDOR_INVITATION_TTL_HOURS: int = 72

    # Comma separated; users registering with these emails become admins
    ADMIN_EMAILS: str = ""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("ADMIN_EMAILS", "SETTLEMENT_MARKER", mode="before")
    def strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(self) -> "Settings":
        if self.CORS_ALLOW_ALL:
            self.CORS_ORIGINS = ["*"]
        return self

    @property
    def admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()}


settings = Settings()
