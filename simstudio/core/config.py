# simstudio/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Hosted Postgres in production; the local default keeps dev runs self-contained
    database_url: str = Field(default="sqlite:///./simstudio.db", alias="DATABASE_URL")
    test_database_url: str = Field(default="sqlite://", alias="TEST_DATABASE_URL")
    database_pool_size: int = Field(default=5, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=5, alias="DATABASE_MAX_OVERFLOW")
    database_pool_timeout: int = Field(default=5, alias="DATABASE_POOL_TIMEOUT")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")
    db_retry_attempts: int = Field(
        default=2,
        alias="DB_RETRY_ATTEMPTS",
        description="Attempts for transient database failures (first try plus one retry)",
    )

    is_testing: bool = False  # Set to True when running tests
    auto_migrate_user_roles: bool = Field(
        default=False,
        alias="AUTO_MIGRATE_USER_ROLES",
        description="Add missing users.is_admin/is_coach columns at startup instead of only reporting them",
    )

    # Studio rules
    studio_timezone: str = Field(default="UTC", alias="STUDIO_TIMEZONE")
    simulator_count: int = Field(default=4, ge=1, alias="SIMULATOR_COUNT")
    min_booking_notice_hours: int = Field(default=2, ge=0, alias="MIN_BOOKING_NOTICE_HOURS")
    max_booking_days_ahead: int = Field(default=30, ge=1, alias="MAX_BOOKING_DAYS_AHEAD")

    # Identity forwarded by the upstream session layer
    identity_header: str = Field(default="X-User-Id", alias="IDENTITY_HEADER")

    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("studio_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown STUDIO_TIMEZONE: {value}") from exc
        return value

    @model_validator(mode="after")
    def _detect_testing(self) -> "Settings":
        if is_running_tests():
            self.is_testing = True
        return self

    @property
    def studio_tz(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.studio_timezone)

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_database_url(self, override: Optional[str] = None) -> str:
        """Get the appropriate database URL based on context."""
        if override:
            return override
        if self.is_testing:
            return self.test_database_url
        return self.database_url


settings = Settings()
logger.info(
    "[CONFIG] environment=%s studio_timezone=%s simulators=%s",
    settings.environment,
    settings.studio_timezone,
    settings.simulator_count,
)
