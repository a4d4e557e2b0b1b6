"""Application settings and configuration.

This module defines all configuration options for the Inkwell application.
Settings are loaded from environment variables with sensible defaults.
"""

import logging
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Inkwell", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS512", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    password_reset_token_expire_minutes: int = Field(
        default=30,
        alias="PASSWORD_RESET_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./inkwell.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Pagination
    comments_default_page_size: int = Field(default=20, alias="COMMENTS_DEFAULT_PAGE_SIZE")
    comments_max_page_size: int = Field(default=100, alias="COMMENTS_MAX_PAGE_SIZE")
    posts_default_page_size: int = Field(default=10, alias="POSTS_DEFAULT_PAGE_SIZE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=DEFAULT_CORS_ORIGINS,
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "X-Requested-With"],
        alias="CORS_ALLOW_HEADERS",
    )
    cors_expose_headers: list[str] = Field(
        default=["Content-Disposition"],
        alias="CORS_EXPOSE_HEADERS",
    )
    cors_max_age: int = Field(default=600, alias="CORS_MAX_AGE")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _sanitize_origins(cls, value: object) -> object:
        """Drop origins that are not absolute URLs, falling back to the defaults."""
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",")]
        if not isinstance(value, list):
            return value

        origins: list[str] = []
        for item in value:
            candidate = str(item).strip()
            if not candidate:
                continue
            parts = urlsplit(candidate)
            if not parts.scheme or not parts.netloc:
                logger.warning("Ignoring CORS origin with invalid format: %s", candidate)
                continue
            origins.append(candidate)
        return origins or list(DEFAULT_CORS_ORIGINS)

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def is_test(self) -> bool:
        """Return True when running under the test environment."""
        return self.environment.lower() == "test"


settings = Settings()  # type: ignore[call-arg]
