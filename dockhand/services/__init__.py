"""Services module for dockhand."""

from .container import DockerHandler, RuntimeFacade

__all__ = [
    "DockerHandler",
    "RuntimeFacade",
]
