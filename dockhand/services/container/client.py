"""Docker client factory and initialization."""

from typing import Optional

import docker
import structlog
from docker.errors import DockerException
from requests.exceptions import RequestException

from ...config import settings

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Factory for creating the low-level Docker API client on first use."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """Initialize the factory without contacting the daemon.

        Args:
            base_url: Daemon URL; falls back to settings, then DOCKER_HOST
            timeout: Request timeout in seconds; falls back to settings
        """
        self.base_url = base_url or settings.docker_base_url
        self.timeout = timeout or settings.docker_timeout
        self.client: Optional[docker.APIClient] = None
        self._initialization_error: Optional[str] = None
        self._initialization_attempted: bool = False
        logger.info("DockerClientFactory initialized (client will be created on first use)")

    def _create_client(self) -> docker.APIClient:
        if self.base_url:
            return docker.APIClient(
                base_url=self.base_url,
                timeout=self.timeout,
                version=settings.docker_api_version,
            )
        return docker.from_env(timeout=self.timeout, version=settings.docker_api_version).api

    def _ensure_client(self) -> bool:
        """Ensure the Docker client is initialized. Returns True if successful."""
        if self.client is not None:
            return True

        if self._initialization_attempted and self._initialization_error:
            return False

        self._initialization_attempted = True
        try:
            logger.info("Initializing Docker client on first use", base_url=self.base_url or "env")
            client = self._create_client()
            client.ping()
            version_info = client.version()
            logger.info(
                "Docker connection successful",
                server_version=version_info.get("Version", "unknown"),
                api_version=version_info.get("ApiVersion", "unknown"),
            )
            self.client = client
            return True
        except (DockerException, RequestException) as e:
            logger.error(f"Failed to create Docker client: {e}")
            self._initialization_error = str(e)
            self.client = None
            return False

    def is_available(self) -> bool:
        """Check if Docker is available."""
        return self._ensure_client()

    def get_initialization_error(self) -> Optional[str]:
        """Get Docker initialization error if any."""
        return self._initialization_error

    def reset_initialization(self) -> None:
        """Reset initialization state to allow retry."""
        self._initialization_attempted = False
        self._initialization_error = None
        self.close()
        logger.info("Docker client initialization state reset")

    def get_client(self) -> Optional[docker.APIClient]:
        """Get the Docker client, ensuring it's initialized."""
        if self._ensure_client():
            return self.client
        return None

    def close(self) -> None:
        """Close Docker client connection."""
        try:
            if self.client is not None:
                self.client.close()
        except Exception as e:
            logger.error(f"Error closing Docker client: {e}")
        finally:
            self.client = None
