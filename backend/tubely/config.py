"""
Tubely Configuration Management Module

This module provides configuration management for the Tubely media backend
using Pydantic Settings. It loads and validates the environment variables
required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection for video metadata records
- S3/MinIO object storage and signed download URLs
- Bearer token (JWT) validation
- Upload size ceilings and scratch space
- External media tools (ffprobe, ffmpeg) and their deadlines

All settings support environment variable overrides and .env file loading.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BYTES_PER_MB = 1024 * 1024


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely backend.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Metadata store connection and pool settings
    - S3/MinIO: Object storage credentials, bucket and signed URL window
    - Auth: JWT secret and algorithm
    - Upload: Size ceilings, chunking and scratch directory
    - Media tools: ffprobe/ffmpeg binaries and deadlines
    - Thumbnails: Local assets directory and public base URL

    Example usage:
        ```python
        from tubely.config import get_settings

        settings = get_settings()
        print(f"Uploading to bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="Tubely", description="Application name for docs and logs")

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=True, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(default=True, description="Emit JSON log lines instead of text")

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI for the video metadata store",
    )

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(default=1, ge=0)

    mongodb_max_pool_size: int = Field(default=50, ge=1)

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str = Field(default="minioadmin")

    s3_secret_access_key: str = Field(default="minioadmin")

    s3_bucket_name: str = Field(
        default="tubely-videos", description="S3 bucket receiving uploaded videos"
    )

    s3_region: str = Field(default="us-east-1")

    signed_url_expiration_seconds: int = Field(
        default=300,
        description="Validity window of signed video URLs in seconds (5 minutes)",
        ge=1,
        le=604800,
    )

    # =========================================================================
    # Auth Configuration
    # =========================================================================

    jwt_secret: str = Field(
        default="development-jwt-secret-change-in-production",
        description="Secret used to verify bearer tokens",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_expiration_hours: int = Field(default=24, ge=1, le=168)

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_video_upload_mb: int = Field(
        default=1024, description="Maximum video upload size in megabytes (1 GiB)", ge=1
    )

    max_thumbnail_upload_mb: int = Field(
        default=10, description="Maximum thumbnail upload size in megabytes", ge=1
    )

    upload_chunk_size_bytes: int = Field(
        default=BYTES_PER_MB, description="Chunk size used when spooling uploads", ge=1024
    )

    upload_temp_dir: str | None = Field(
        default=None, description="Scratch directory for spooled files (system temp if unset)"
    )

    # =========================================================================
    # Media Tool Settings
    # =========================================================================

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")

    probe_timeout_seconds: float = Field(default=30.0, gt=0)

    transcode_timeout_seconds: float = Field(default=600.0, gt=0)

    # =========================================================================
    # Thumbnail Settings
    # =========================================================================

    assets_root: str = Field(default="assets", description="Directory serving thumbnails")

    assets_base_url: str | None = Field(
        default=None, description="Public base URL of /assets (defaults to localhost:port)"
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_video_upload_bytes(self) -> int:
        return self.max_video_upload_mb * BYTES_PER_MB

    @property
    def max_thumbnail_upload_bytes(self) -> int:
        return self.max_thumbnail_upload_mb * BYTES_PER_MB

    @property
    def thumbnail_base_url(self) -> str:
        """Base URL thumbnails are served from, without a trailing slash."""
        if self.assets_base_url:
            return self.assets_base_url.rstrip("/")
        return f"http://localhost:{self.port}/assets"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call; later calls return the cached instance without
    re-reading environment variables or .env files.
    """
    return Settings()
