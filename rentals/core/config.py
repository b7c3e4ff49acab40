# rentals/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_PROJECT_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _PROJECT_ROOT / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


if os.getenv("CI") or is_running_tests():
    _DEFAULT_SECRET_KEY = SecretStr("ci-test-secret-key-not-for-production")
else:
    _DEFAULT_SECRET_KEY = SecretStr("")


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level")

    # Bearer tokens are issued by the upstream identity provider
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Shared secret used to verify access tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    database_url: str = Field(
        default="sqlite:///./rentals.db",
        description="SQLAlchemy URL for the primary database",
    )
    # Must precede test_database_url; its validator reads this field
    production_database_indicators: list[str] = [
        "supabase.co",
        "supabase.com",
        "amazonaws.com",
        "render.com",
    ]
    test_database_url: Optional[str] = Field(
        default=None,
        description="Optional database for integration tests (PostgreSQL race tests)",
    )
    db_pool_size: int = Field(default=10, ge=1)
    db_max_overflow: int = Field(default=5, ge=0)
    db_pool_timeout: int = Field(default=10, ge=1, description="Seconds to wait for a connection")
    db_statement_timeout_ms: int = Field(default=30000, ge=0)

    # Booking policy switches
    enforce_same_day_bookings: bool = Field(
        default=False,
        description="Reject bookings whose start and end fall on different UTC days",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url", "test_database_url")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Accept Heroku-style postgres:// URLs."""
        if v and v.startswith("postgres://"):
            return "postgresql://" + v[len("postgres://") :]
        return v

    @field_validator("test_database_url")
    @classmethod
    def validate_test_database(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Ensure the test database is not a production database."""
        if not v:
            return v

        prod_indicators = info.data.get("production_database_indicators", [])
        for indicator in prod_indicators:
            if indicator in v.lower():
                raise ValueError(
                    f"Test database URL contains production indicator '{indicator}'. "
                    f"Tests must not use production databases!"
                )
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_testing(self) -> bool:
        return self.environment == "test" or is_running_tests()


settings = Settings()
