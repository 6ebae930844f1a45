"""Configuration management for the Plugstore backend.

Uses Pydantic Settings for type-safe, environment-based configuration.
"""

from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Load environment variables from .env file
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # App configuration
    app_name: str = Field("Plugstore", alias="PLUGSTORE_APP_NAME")
    debug: bool = Field(False, alias="PLUGSTORE_DEBUG")
    version: str = Field("0.1.0-dev", alias="PLUGSTORE_APP_VERSION")

    # API configuration
    api_v1_prefix: str = "/api/v1"
    api_host: str = Field("127.0.0.1", alias="PLUGSTORE_API_HOST")
    api_port: int = Field(3000, alias="PLUGSTORE_API_PORT")
    environment: str = Field("development", alias="PLUGSTORE_ENVIRONMENT")
    reload: bool = Field(False, alias="PLUGSTORE_RELOAD")

    # Database configuration
    database_url: str = Field(alias="PLUGSTORE_DATABASE_URL")
    database_pool_size: int = 20
    database_max_overflow: int = 30
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600

    # Logging configuration
    log_level: str = Field("INFO", alias="PLUGSTORE_LOG_LEVEL")
    log_format: str = Field("text", alias="PLUGSTORE_LOG_FORMAT")  # text or json
    log_dir: str = Field("./logs", alias="PLUGSTORE_LOG_DIR")
    log_retention_days: int = Field(14, alias="PLUGSTORE_LOG_RETENTION_DAYS")
    # Set to false to run without writing a log file (console only)
    log_to_file: bool = Field(True, alias="PLUGSTORE_LOG_TO_FILE")

    # Release file storage
    storage_root: str = Field("./storage", alias="PLUGSTORE_STORAGE_ROOT")
    max_upload_size: int = Field(20 * 1024 * 1024, alias="PLUGSTORE_MAX_UPLOAD_SIZE")  # 20MB

    # Sessions
    session_cookie_name: str = Field("sessionId", alias="PLUGSTORE_SESSION_COOKIE_NAME")
    session_ttl_seconds: int = Field(60 * 60 * 24 * 7, alias="PLUGSTORE_SESSION_TTL_SECONDS")  # one week
    session_cookie_secure: bool = Field(True, alias="PLUGSTORE_SESSION_COOKIE_SECURE")
    bcrypt_rounds: int = Field(10, alias="PLUGSTORE_BCRYPT_ROUNDS")

    # Admin access (Authorization: Bearer <key>)
    master_api_key: str | None = Field(None, alias="PLUGSTORE_MASTER_API_KEY")

    # Remote user service used for author validation; local users table when unset
    user_service_url: str | None = Field(None, alias="PLUGSTORE_USER_SERVICE_URL")
    http_timeout: float = Field(10.0, alias="PLUGSTORE_HTTP_TIMEOUT")

    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"], alias="PLUGSTORE_ALLOWED_ORIGINS")
    cors_credentials: bool = True

    @staticmethod
    def _repo_root_from_this_file() -> Path:
        """Resolve repository root for both local and container layouts.

        - Local dev: <repo>/backend/src/plugstore/core/config.py -> repo root = <repo>
        - Container: /app/src/plugstore/core/config.py -> repo root = /app
        """
        here = Path(__file__).resolve()
        src_dir = here.parents[2]  # .../src
        candidate_parent = src_dir.parent
        return candidate_parent.parent if candidate_parent.name == "backend" else candidate_parent

    @field_validator("log_dir", "storage_root", mode="before")
    @classmethod
    def _resolve_repo_relative_dir(cls, v: str) -> str:
        p = Path(v)
        if p.is_absolute():
            return str(p)
        root = cls._repo_root_from_this_file()
        return str((root / p).resolve())

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v.lower()

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def validate_allowed_origins(cls, v: str | list) -> list:
        """Parse allowed origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()] or ["*"]
        return v

    @field_validator("master_api_key", "user_service_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat blank strings as unset."""
        if v is not None and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """Build a fresh settings instance from the environment."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance - created when first accessed
settings = None


def get_settings_instance() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global settings  # noqa: PLW0603
    if settings is None:
        settings = get_settings()
    return settings
