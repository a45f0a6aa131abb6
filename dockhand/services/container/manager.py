"""Docker handler: one object exposing every facade operation.

The workflow components share one ``RuntimeFacade``; the runtime client
behind it is created from settings on first use unless one is passed in.
"""

import os
from typing import Any, BinaryIO, Dict, List, Optional, Sequence

import structlog

from ...models.errors import RuntimeAPIError
from ...models.resources import ExecOutcome, ResourceHandle, ResourceKind, RunResult
from .archive import ArchiveExtractor
from .builder import ImageBuilder
from .client import DockerClientFactory
from .executor import ContainerExecutor
from .facade import RuntimeFacade
from .network import NetworkProvisioner
from .resolver import NameResolver, ResourceExistenceChecker
from .status import StatusEnricher


class DockerHandler:
    """Promise-style Docker operations plus the higher-level workflows."""

    def __init__(
        self,
        api=None,
        client_factory: Optional[DockerClientFactory] = None,
        output: Optional[BinaryIO] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        """Initialize the handler.

        Args:
            api: Existing low-level docker API client to bind
            client_factory: Supplies the client lazily when ``api`` is None
            output: Where exec/run/build output is echoed; stdout by default
            logger: Optional structlog logger shared by every component
        """
        if api is None and client_factory is None:
            client_factory = DockerClientFactory()
        self._client_factory = client_factory
        self._logger = logger or structlog.get_logger(__name__)

        self.facade = RuntimeFacade(api, client_factory=client_factory, logger=self._logger)
        self.checker = ResourceExistenceChecker(self.facade, logger=self._logger)
        self.resolver = NameResolver(self.facade, logger=self._logger)
        self.provisioner = NetworkProvisioner(self.facade, checker=self.checker, logger=self._logger)
        self.extractor = ArchiveExtractor(self.facade, logger=self._logger)
        self.executor = ContainerExecutor(self.facade, output=output, logger=self._logger)
        self.builder = ImageBuilder(self.facade, output=output, logger=self._logger)
        self.enricher = StatusEnricher(self.facade, logger=self._logger)

    def is_available(self) -> bool:
        """Check if Docker is available."""
        try:
            self.facade.api
            return True
        except RuntimeAPIError:
            return False

    # ------------------------------------------------------------------ handles
    def get_container(self, container_id: str) -> ResourceHandle:
        """Handle for a container name or id; the daemon is not contacted."""
        return ResourceHandle(kind=ResourceKind.CONTAINER, ref=container_id)

    def get_network(self, network_id: str) -> ResourceHandle:
        """Handle for a network name or id; the daemon is not contacted."""
        return ResourceHandle(kind=ResourceKind.NETWORK, ref=network_id)

    # ------------------------------------------------------------------ inspect
    async def inspect_image(self, image_id: Any) -> Dict[str, Any]:
        return await self.facade.inspect_image(image_id)

    async def inspect_container(self, container_id: Any) -> Dict[str, Any]:
        return await self.facade.inspect_container(container_id)

    async def inspect_network(self, network_id: Any) -> Dict[str, Any]:
        return await self.facade.inspect_network(network_id)

    async def inspect_container_status(self, name: Any) -> Dict[str, Any]:
        return await self.enricher.inspect_container_status(name)

    # ---------------------------------------------------------------- existence
    async def does_network_exist(self, network_id: Any) -> bool:
        return await self.checker.does_network_exist(network_id)

    async def does_image_exist(self, image_id: Any) -> bool:
        return await self.checker.does_image_exist(image_id)

    async def does_container_exist(self, container_id: Any) -> bool:
        return await self.checker.does_container_exist(container_id)

    async def do_containers_exist(self, *container_ids: Any) -> List[bool]:
        return await self.checker.do_containers_exist(*container_ids)

    # ------------------------------------------------------------------ lookups
    async def list_networks(self) -> List[ResourceHandle]:
        return await self.resolver.list_networks()

    async def get_network_by_name(self, name: str) -> ResourceHandle:
        return await self.resolver.get_network_by_name(name)

    async def find_by_name(self, kind: ResourceKind, name: str) -> ResourceHandle:
        return await self.resolver.find_by_name(kind, name)

    async def list_containers_by_name(self, name: str) -> List[ResourceHandle]:
        return await self.resolver.list_containers_by_name(name)

    async def find_existing_volumes(self, volumes: Sequence[str]) -> Optional[List[Dict[str, Any]]]:
        return await self.resolver.find_existing_volumes(volumes)

    # ---------------------------------------------------------------- lifecycle
    async def start_container(self, container_id: Any, **options) -> None:
        try:
            await self.facade.start_container(container_id, **options)
        except RuntimeAPIError as e:
            self._logger.warning(f"Container {container_id} start fails. Error: {e.message}")
            raise
        self._logger.debug(f"Container {container_id} start succeeds")

    async def run(
        self,
        image: str,
        cmd: Any = None,
        output: Optional[BinaryIO] = None,
        create_options: Optional[Dict[str, Any]] = None,
        start_options: Optional[Dict[str, Any]] = None,
    ) -> RunResult:
        return await self.executor.run(image, cmd, output, create_options, start_options)

    async def create_overlay_network(self, name: str) -> None:
        await self.provisioner.ensure_overlay_network(name)

    async def connect_container_to_network(self, container: Any, network: Any) -> None:
        await self.provisioner.connect_container_to_network(container, network)

    async def disconnect_container_from_network(self, container: Any, network: Any) -> None:
        await self.provisioner.disconnect_container_from_network(container, network)

    # ---------------------------------------------------------------- workflows
    async def exec(self, container: Any, cmd: List[str]) -> ExecOutcome:
        return await self.executor.exec(container, cmd)

    async def copy_docker_files(self, container: Any, src: str, dst_dir: str | os.PathLike) -> None:
        await self.extractor.copy_from_container(container, src, dst_dir)

    async def build_image(self, context: Any, **options) -> List[Dict[str, Any]]:
        return await self.builder.build(context, **options)

    def close(self) -> None:
        """Close Docker client connection."""
        if self._client_factory is not None:
            self._client_factory.close()
