"""Container runtime services.

This package wraps the Docker runtime client in a uniform async facade
and layers the stateful workflows on top of it:
- client.py: Docker client factory and initialization
- facade.py: Single-settlement wrappers over raw runtime calls
- resolver.py: Existence probes and name-based lookups
- network.py: Create-if-absent overlay networks and attachment
- archive.py: Copying files out of a container
- executor.py: Command execution in containers
- builder.py: Image builds with progress following
- status.py: Container status enrichment
- manager.py: DockerHandler, the composition root
"""

from .archive import ArchiveExtractor
from .builder import ImageBuilder, ProgressFollower, follow_progress
from .client import DockerClientFactory
from .executor import ContainerExecutor
from .facade import RuntimeFacade
from .manager import DockerHandler
from .network import NetworkProvisioner
from .resolver import NameResolver, ResourceExistenceChecker
from .status import StatusEnricher, describe_since, format_elapsed

__all__ = [
    "ArchiveExtractor",
    "ContainerExecutor",
    "DockerClientFactory",
    "DockerHandler",
    "ImageBuilder",
    "NameResolver",
    "NetworkProvisioner",
    "ProgressFollower",
    "ResourceExistenceChecker",
    "RuntimeFacade",
    "StatusEnricher",
    "describe_since",
    "follow_progress",
    "format_elapsed",
]
