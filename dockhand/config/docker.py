"""Docker runtime configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Docker runtime client settings."""

    base_url: str | None = Field(default=None, alias="docker_base_url")
    timeout: int = Field(default=60, ge=1, alias="docker_timeout")
    api_version: str = Field(default="auto", alias="docker_api_version")

    # Provisioning
    overlay_driver: str = Field(default="overlay")

    # Archive transfer
    archive_suffix: str = Field(default=".tar")

    # Console echo of exec/build streams
    echo_exec_output: bool = Field(default=True)
    echo_build_output: bool = Field(default=True)

    class Config:
        env_prefix = ""
        extra = "ignore"
