"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all application configuration.
"""


import os

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.logger import setup_logger

load_dotenv(override=False)


logger = setup_logger("core_config")

DEFAULT_SECRET_KEY = "your-secret-key-change-this-in-production"


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        # Allow override from environment variables
        env_prefix="",
    )

    # ===== Database Configuration =====
    app_database_url: str = Field(
        default="sqlite+aiosqlite:///./task_tracker.db",
        alias="TASK_TRACKER_DATABASE_URL",
        description="Application database URL (postgresql+asyncpg or sqlite+aiosqlite)",
    )

    database_schema: str | None = Field(
        default=None,
        alias="TASK_TRACKER_SCHEMA",
        description="Postgres schema holding the application tables",
    )

    # ===== Authentication Configuration =====
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        alias="SECRET_KEY",
        description="Key used to sign JWT bearer tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256", alias="JWT_ALGORITHM", description="JWT signing algorithm"
    )

    access_token_expire_minutes: int = Field(
        default=1440,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
        description="Lifetime of issued access tokens in minutes (24 hours default)",
    )

    # ===== Photo Upload Configuration =====
    upload_dir: str = Field(
        default="uploads",
        alias="UPLOAD_DIR",
        description="Directory where uploaded task photos are written",
    )

    upload_url_prefix: str = Field(
        default="/uploads",
        alias="UPLOAD_URL_PREFIX",
        description="URL prefix under which uploaded photos are served",
    )

    max_upload_size_bytes: int = Field(
        default=5 * 1024 * 1024,
        alias="MAX_UPLOAD_SIZE_BYTES",
        description="Maximum accepted size of a single photo upload",
    )

    allowed_image_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
        ],
        alias="ALLOWED_IMAGE_TYPES",
        description="Content types accepted for task photos",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=5000, alias="SERVER_PORT", description="Server port number"
    )

    server_workers: int = Field(
        default=1, alias="SERVER_WORKERS", description="Number of uvicorn workers"
    )

    # ===== CORS Configuration =====
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",  # Vite dev server default port
            "http://localhost:3000",  # Alternative dev port
            "http://127.0.0.1:5173",  # Local IP variant
        ],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    cors_allow_credentials: bool = Field(
        default=True,
        alias="CORS_ALLOW_CREDENTIALS",
        description="Whether to allow credentials in CORS requests",
    )

    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_METHODS",
        description="CORS allowed methods",
    )

    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_HEADERS",
        description="CORS allowed headers",
    )

    # User-facing hint for database connection errors
    db_unavailable_hint: str = os.getenv(
        "DB_UNAVAILABLE_HINT",
        "Database connection failed. The server may be offline or network connectivity is down.",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Normalize the database URL and log warnings for risky configurations."""

        if self.app_database_url.startswith("postgresql://"):
            self.app_database_url = self.app_database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )

        if self.secret_key == DEFAULT_SECRET_KEY:
            logger.warning(
                "SECRET_KEY environment variable not set. Using the development key."
            )

        logger.debug(f"Using database schema: {self.database_schema}")
        logger.debug(f"Photo uploads stored in: {self.upload_dir}")

        return self

    @property
    def schema_name(self) -> str | None:
        return self.database_schema

    @property
    def is_postgres(self) -> bool:
        return self.app_database_url.startswith("postgresql+asyncpg://")


# Global settings instance
settings = Settings()

SCHEMA_NAME = settings.schema_name
