"""Application settings and configuration.

This module defines all configuration options for the QSys queueing service.
Settings are loaded from environment variables with sensible defaults.
"""

import json

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="QSys Queue", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./qsys.db",
        alias="DATABASE_URL",
    )
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    transaction_max_attempts: int = Field(default=3, ge=1, alias="TRANSACTION_MAX_ATTEMPTS")

    # Queue partitioning and ticket codes
    queue_timezone: str = Field(default="Asia/Manila", alias="QUEUE_TIMEZONE")
    default_branch_code: str = Field(default="YL-MOA", alias="DEFAULT_BRANCH_CODE")
    queue_number_width: int = Field(default=2, ge=1, alias="QUEUE_NUMBER_WIDTH")
    branch_name_map: dict[str, str] = Field(default_factory=dict, alias="BRANCH_NAME_MAP")

    # Wait-time sampling (staff seat events)
    wait_time_min_clamp_min: float = Field(default=3.0, alias="WAIT_TIME_MIN_CLAMP_MIN")
    wait_time_min_clamp_max: float = Field(default=90.0, alias="WAIT_TIME_MIN_CLAMP_MAX")
    wait_time_ema_alpha: float = Field(default=0.2, gt=0, le=1, alias="WAIT_TIME_EMA_ALPHA")

    # ETA estimation
    min_samples_for_bucket: int = Field(default=10, alias="MIN_SAMPLES_FOR_BUCKET")
    min_stats_sample: int = Field(default=5, alias="MIN_STATS_SAMPLE")
    default_avg_wait_min: float = Field(default=15.0, alias="DEFAULT_AVG_WAIT_MIN")
    default_avg_min_per_ticket: dict[str, float] = Field(
        default_factory=lambda: {"P": 10.0, "A": 15.0, "B": 20.0, "C": 25.0},
        alias="DEFAULT_AVG_MIN_PER_TICKET",
    )

    # CORS configuration for the guest, staff and admin frontends
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_branch_code")
    @classmethod
    def _upper_branch_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("branch_name_map", mode="before")
    @classmethod
    def _parse_branch_name_map(cls, value: object) -> object:
        # Deployments pass this as a raw JSON string; a malformed value means "no map".
        if isinstance(value, str):
            try:
                parsed = json.loads(value) if value.strip() else {}
            except json.JSONDecodeError:
                return {}
            return parsed if isinstance(parsed, dict) else {}
        return value

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts async driver URLs (asyncpg, aiosqlite) to their synchronous
        counterparts for Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        if url.startswith("sqlite+aiosqlite"):
            return url.replace("sqlite+aiosqlite", "sqlite", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    def fallback_wait_minutes(self, group: str) -> float:
        """Return the static per-ticket wait used when a bucket has too few samples."""
        return float(self.default_avg_min_per_ticket.get(group, self.default_avg_wait_min))


settings = Settings()  # type: ignore[call-arg]
