"""dockhand: an async control-plane facade over the Docker runtime."""

from ._version import __version__
from .services.container import DockerHandler

__all__ = ["DockerHandler", "__version__"]
