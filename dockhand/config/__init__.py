"""Configuration management for dockhand.

Settings are read from environment variables (and an optional ``.env``
file) and exposed both flat and through grouped views.

Usage:
    from dockhand.config import settings

    settings.docker_timeout
    settings.docker.timeout
    settings.logging.level
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .docker import DockerConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Docker runtime client
    docker_base_url: str | None = Field(
        default=None,
        description="Daemon URL (unix://, tcp://, ssh://). Empty = DOCKER_HOST / default socket",
    )
    docker_timeout: int = Field(default=60, ge=1, le=3600)
    docker_api_version: str = Field(default="auto")

    # Provisioning
    overlay_driver: str = Field(default="overlay", description="Driver used by ensure_overlay_network")

    # Archive transfer
    archive_suffix: str = Field(default=".tar", description="Suffix of temporary archive files")

    # Console echo of exec/build streams
    echo_exec_output: bool = Field(default=True, description="Pipe exec output to stdout while it runs")
    echo_build_output: bool = Field(default=True, description="Pipe build progress to stdout while it runs")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: str | None = Field(default=None)
    log_max_size_mb: int = Field(default=100, ge=1)
    log_backup_count: int = Field(default=5, ge=1)

    @field_validator("archive_suffix")
    @classmethod
    def validate_archive_suffix(cls, v):
        """Keep temporary archive names inside the destination directory."""
        if "/" in v or "\\" in v:
            raise ValueError("archive_suffix must not contain path separators")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only json and console rendering are supported."""
        if v.lower() not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v.lower()

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_base_url=self.docker_base_url,
            docker_timeout=self.docker_timeout,
            docker_api_version=self.docker_api_version,
            overlay_driver=self.overlay_driver,
            archive_suffix=self.archive_suffix,
            echo_exec_output=self.echo_exec_output,
            echo_build_output=self.echo_build_output,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            log_file=self.log_file,
            log_max_size_mb=self.log_max_size_mb,
            log_backup_count=self.log_backup_count,
        )


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "DockerConfig",
    "LoggingConfig",
]
