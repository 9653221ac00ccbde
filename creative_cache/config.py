"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Datastore
    database_path: Path = Field(
        default=Path("data/creative_cache.db"),
        description="SQLite database holding campaign rows and download sessions"
    )

    # Object Storage
    asset_bucket: str = Field(
        default="campaign-assets",
        description="Bucket name of the managed asset storage namespace"
    )
    storage_backend: Literal["local", "http"] = Field(
        default="local",
        description="Object storage backend (local=filesystem, http=storage REST API)"
    )
    storage_root: Path = Field(
        default=Path("data/storage"),
        description="Root directory for the local storage backend"
    )
    storage_url: str = Field(
        default="http://localhost:54321/storage/v1",
        description="Base URL of the storage REST API (http backend)"
    )
    storage_key: str | None = Field(
        default=None,
        description="Service key sent as bearer token to the storage REST API"
    )
    storage_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single object storage call in seconds"
    )

    # Asset Cache
    similarity_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Default threshold for prompt similarity matching"
    )
    retention_days: int = Field(
        default=30,
        ge=0,
        description="Campaigns older than this are swept by cleanup"
    )

    # Download Sessions
    session_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Lifetime of a download session (default: 1 hour)"
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL used to build download links"
    )
    archive_download_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for each image download while building an archive"
    )

    # Server
    host: str = Field(default="127.0.0.1", description="API bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="API bind port")

    # Logging
    log_to_file: bool = Field(
        default=True,
        description="Enable logging to file with rotation"
    )
    log_dir: Path = Field(
        default=Path("output/logs"),
        description="Directory for log files"
    )
    log_max_age_days: int = Field(
        default=7,
        ge=1,
        le=30,
        description="Maximum age of log files to keep (days)"
    )


# Global settings instance
settings = Settings()
