"""Network provisioning and container attachment.

``ensure_overlay_network`` is a check-then-create sequence and is not
atomic: a concurrent actor may create the same name between the existence
check and the create call. Callers that need exclusivity must serialize
their own calls per network name.
"""

from typing import Any, Optional

import structlog

from ...config import settings
from ...models.errors import DockhandError
from ...models.resources import resolve_ref
from .facade import RuntimeFacade
from .resolver import ResourceExistenceChecker


class NetworkProvisioner:
    """Create-if-absent provisioning for overlay networks."""

    def __init__(
        self,
        facade: RuntimeFacade,
        checker: Optional[ResourceExistenceChecker] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        """Initialize the provisioner.

        Args:
            facade: Runtime facade used for create/connect/disconnect
            checker: Existence checker; built from ``facade`` when omitted
            logger: Optional structlog logger
        """
        self.facade = facade
        self.checker = checker or ResourceExistenceChecker(facade, logger=logger)
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def driver(self) -> str:
        """Network driver used for provisioning, from settings."""
        return settings.overlay_driver

    async def ensure_overlay_network(self, name: str) -> None:
        """Create an overlay network named ``name`` unless one exists.

        An existing network is not an error; the call is a no-op.
        """
        try:
            if await self.checker.does_network_exist(name):
                self._logger.warning(f"Network {name} already exists")
                return

            await self.facade.create_network(name, driver=self.driver)
            self._logger.debug(f"Creating overlay network {name}: done", driver=self.driver)
        except DockhandError as e:
            self._logger.error(f"Creating overlay network {name}: failed", **e.to_dict())
            raise

    async def connect_container_to_network(self, container: Any, network: Any) -> None:
        try:
            await self.facade.connect(network, container)
        except DockhandError as e:
            self._logger.error(
                f"Connecting network and container {resolve_ref(container)}: failed", **e.to_dict()
            )
            raise

    async def disconnect_container_from_network(self, container: Any, network: Any) -> None:
        """Disconnect ``container`` from ``network``; always forced."""
        try:
            await self.facade.disconnect(network, container, force=True)
        except DockhandError as e:
            self._logger.error(
                f"Disconnecting network and container {resolve_ref(container)}: failed", **e.to_dict()
            )
            raise
