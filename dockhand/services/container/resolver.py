"""Existence probes and name-based lookups."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import structlog

from ...models.errors import AmbiguousMatchError, DockhandError, NotFoundError
from ...models.resources import ResourceHandle, ResourceKind
from .facade import RuntimeFacade


class ResourceExistenceChecker:
    """Answers "does X exist" by inspecting it.

    Any inspect failure counts as "absent": the daemon does not reliably
    distinguish not-found from other errors, and callers such as the
    network provisioner must not stall on a non-actionable error.
    """

    def __init__(self, facade: RuntimeFacade, logger: Optional[structlog.BoundLogger] = None):
        self.facade = facade
        self._logger = logger or structlog.get_logger(__name__)

    async def exists(self, kind: ResourceKind, resource: Any) -> bool:
        try:
            await self.facade.inspect(kind, resource)
            return True
        except Exception as e:
            self._logger.debug(
                "Treating resource as absent",
                kind=kind.value,
                resource=str(resource),
                error=str(e),
            )
            return False

    async def exists_all(self, kind: ResourceKind, resources: Sequence[Any]) -> List[bool]:
        """Check several resources concurrently; results follow input order."""
        return list(await asyncio.gather(*[self.exists(kind, r) for r in resources]))

    async def does_network_exist(self, network: Any) -> bool:
        return await self.exists(ResourceKind.NETWORK, network)

    async def does_image_exist(self, image: Any) -> bool:
        return await self.exists(ResourceKind.IMAGE, image)

    async def does_container_exist(self, container: Any) -> bool:
        return await self.exists(ResourceKind.CONTAINER, container)

    async def do_containers_exist(self, *containers: Any) -> List[bool]:
        return await self.exists_all(ResourceKind.CONTAINER, containers)


def descriptor_names(descriptor: Dict[str, Any]) -> List[str]:
    """All names a listing descriptor is known by.

    Networks and volumes carry ``Name``; containers carry ``Names`` with a
    leading slash per name; images carry ``RepoTags`` (``repo:tag``).
    """
    names = []
    if descriptor.get("Name"):
        names.append(descriptor["Name"])
    for name in descriptor.get("Names") or []:
        names.append(name.lstrip("/"))
    for tag in descriptor.get("RepoTags") or []:
        if tag != "<none>:<none>":
            names.append(tag)
    return names


class NameResolver:
    """List-then-filter lookups, since listing APIs index by id."""

    def __init__(self, facade: RuntimeFacade, logger: Optional[structlog.BoundLogger] = None):
        self.facade = facade
        self._logger = logger or structlog.get_logger(__name__)

    async def find_by_name(self, kind: ResourceKind, name: str) -> ResourceHandle:
        """Return the single resource of ``kind`` named exactly ``name``.

        Raises:
            NotFoundError: No resource has that name
            AmbiguousMatchError: More than one resource has that name
        """
        descriptors = await self.facade.list(kind)
        matches = [d for d in descriptors if name in descriptor_names(d)]

        if not matches:
            raise NotFoundError(kind.value.capitalize(), name, context={"operation": "find_by_name"})
        if len(matches) > 1:
            self._logger.warning(
                "Name lookup is ambiguous", kind=kind.value, name=name, matches=len(matches)
            )
            raise AmbiguousMatchError(kind.value, name, len(matches), context={"operation": "find_by_name"})
        return ResourceHandle.from_descriptor(kind, matches[0])

    async def get_network_by_name(self, name: str) -> ResourceHandle:
        return await self.find_by_name(ResourceKind.NETWORK, name)

    async def list_networks(self) -> List[ResourceHandle]:
        """List every network as a handle carrying its descriptor fields."""
        try:
            networks = await self.facade.list_networks()
        except DockhandError as e:
            self._logger.warning(f"Listing networks fails. Error: {e.message}")
            raise
        return [ResourceHandle.from_descriptor(ResourceKind.NETWORK, n) for n in networks]

    async def list_containers_by_name(self, name: str) -> List[ResourceHandle]:
        """Containers matching the daemon's name filter (substring match)."""
        try:
            containers = await self.facade.list_containers(filters={"name": [name]})
        except DockhandError as e:
            self._logger.warning(f"Listing containers by name fails. Error: {e.message}")
            raise
        self._logger.debug(f"Found {len(containers)} containers named {name}")
        return [ResourceHandle.from_descriptor(ResourceKind.CONTAINER, c) for c in containers]

    async def find_existing_volumes(self, names: Sequence[str]) -> Optional[List[Dict[str, Any]]]:
        """Volumes whose names match any of ``names``; None if the daemon sent nothing."""
        try:
            data = await self.facade.list_volumes(filters={"name": list(names)})
        except DockhandError:
            self._logger.error(f"Find volumes {list(names)} fails")
            raise
        volumes = None if data is None else data.get("Volumes")
        self._logger.debug("Finding volumes", names=list(names), found=len(volumes or []))
        return volumes
