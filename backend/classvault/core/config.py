"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLASSVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "ClassVault"
    version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8080, description="Server port")

    # Paths
    config_path: Path = Field(
        default=Path("/config"),
        description="Path for configuration files and database",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Database connection URL (defaults to SQLite under config_path)",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Identity
    jwt_secret: str = Field(
        default="change-me-in-production",
        description="Shared secret used to validate bearer tokens",
    )
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(default=60 * 24 * 7, ge=1)

    # Google Drive service account (read-only scope)
    google_service_account_email: str | None = Field(
        default=None,
        description="Service account email the mirrored folders are shared with",
    )
    google_service_account_private_key: str | None = Field(
        default=None,
        description="PEM private key; literal \\n sequences are accepted",
    )

    # Drive mirroring
    drive_request_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Seconds allowed for a single Drive API call",
    )
    drive_mount_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds allowed to expand one mount during a listing",
    )
    drive_max_depth: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum folder nesting followed below a mount root",
    )
    drive_max_nodes: int = Field(
        default=5000,
        ge=1,
        description="Maximum number of files and folders materialized per mount",
    )
    drive_page_size: int = Field(
        default=1000,
        ge=1,
        le=1000,
        description="Page size used when listing folder children",
    )
    drive_max_concurrent_mounts: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Mounts expanded concurrently within one listing request",
    )
    drive_target_kinds: list[Literal["DOCUMENT", "AUDIO", "VIDEO", "OTHER"]] = Field(
        default=["DOCUMENT"],
        description="Media kinds collected from mirrored folders",
    )

    # Listing
    default_page_size: int = Field(default=12, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @property
    def drive_configured(self) -> bool:
        """Check if service account credentials are configured."""
        return bool(self.google_service_account_email and self.google_service_account_private_key)

    @property
    def db_path(self) -> Path:
        """Get the SQLite database file path."""
        return self.config_path / "classvault.db"


# Global settings instance
settings = Settings()
