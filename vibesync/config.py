"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Vibesync"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Storage backends
    storage_backend: Literal["firestore", "memory"] = Field(default="memory")
    gcp_project: str | None = Field(default=None)
    google_credentials_path: str | None = Field(default=None)
    firestore_database: str | None = Field(default=None)
    storage_bucket: str | None = Field(default=None)

    # Collections
    events_collection: str = Field(default="events")
    users_collection: str = Field(default="users")

    # Transactions
    transaction_max_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Optimistic transaction attempts before giving up",
    )

    # Media
    media_upload_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum overlapping uploads within one batch",
    )
    media_jpeg_quality: int = Field(default=90, ge=1, le=95)
    media_max_dimension: int = Field(
        default=2048,
        ge=64,
        description="Longest edge in pixels after compression",
    )
    blob_url_ttl_seconds: int = Field(
        default=0,
        ge=0,
        description="Signed URL lifetime; 0 returns public URLs",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
