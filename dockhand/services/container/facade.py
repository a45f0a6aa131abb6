"""Uniform async contract over the raw docker API client.

Every method here wraps exactly one blocking ``docker.APIClient`` call,
offloads it to the event loop's default executor and settles once: it
either returns the daemon's raw descriptor data or raises a
``RuntimeAPIError`` (``NotFoundError`` for a 404). Nothing is cached.
"""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import structlog
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from ...models.errors import NotFoundError, RuntimeAPIError
from ...models.resources import ResourceHandle, ResourceKind, resolve_ref
from .client import DockerClientFactory


class RuntimeFacade:
    """Promise-style wrapper over inspect/list/create/start/exec/build calls."""

    def __init__(
        self,
        api=None,
        client_factory: Optional[DockerClientFactory] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        """Initialize the facade.

        Args:
            api: Low-level docker API client (``docker.APIClient``)
            client_factory: Lazily supplies the client when ``api`` is not given
            logger: Optional structlog logger; defaults to the module logger
        """
        self._api = api
        self._client_factory = client_factory
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def api(self):
        """The bound client, created on first use when a factory is set."""
        if self._api is None and self._client_factory is not None:
            self._api = self._client_factory.get_client()
        if self._api is None:
            error_msg = "Docker not available"
            init_error = self._client_factory.get_initialization_error() if self._client_factory else None
            if init_error:
                error_msg += f" - {init_error}"
            raise RuntimeAPIError(error_msg, context={"operation": "connect"})
        return self._api

    async def _call(
        self,
        operation: str,
        fn: Callable[..., Any],
        *args,
        kind: Optional[ResourceKind] = None,
        resource: Optional[str] = None,
        **kwargs,
    ) -> Any:
        """Run one blocking client call and normalize its failure shape."""
        context = {"operation": operation}
        if resource is not None:
            context["resource_id"] = resource

        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, *args, **kwargs))
        except NotFound as e:
            self._logger.debug(f"{operation} {resource}: not found", error=str(e), **context)
            label = kind.value.capitalize() if kind else "Resource"
            raise NotFoundError(label, resource, context=context) from e
        except (DockerException, RequestException) as e:
            self._logger.debug(f"{operation} {resource}: failed", error=str(e), **context)
            raise RuntimeAPIError(f"{operation} failed: {e}", context=context) from e

    # ------------------------------------------------------------------ inspect
    async def inspect(self, kind: ResourceKind, resource: Any) -> Dict[str, Any]:
        """Inspect any resource kind and return a fresh descriptor."""
        ref = resolve_ref(resource)
        inspectors = {
            ResourceKind.IMAGE: self.api.inspect_image,
            ResourceKind.CONTAINER: self.api.inspect_container,
            ResourceKind.NETWORK: self.api.inspect_network,
            ResourceKind.VOLUME: self.api.inspect_volume,
        }
        return await self._call(f"inspect_{kind.value}", inspectors[kind], ref, kind=kind, resource=ref)

    async def inspect_image(self, image: Any) -> Dict[str, Any]:
        return await self.inspect(ResourceKind.IMAGE, image)

    async def inspect_container(self, container: Any) -> Dict[str, Any]:
        return await self.inspect(ResourceKind.CONTAINER, container)

    async def inspect_network(self, network: Any) -> Dict[str, Any]:
        return await self.inspect(ResourceKind.NETWORK, network)

    # --------------------------------------------------------------------- list
    async def list(self, kind: ResourceKind, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """List descriptors of one kind; containers include stopped ones."""
        if kind == ResourceKind.NETWORK:
            return await self.list_networks(filters)
        if kind == ResourceKind.CONTAINER:
            return await self.list_containers(filters)
        if kind == ResourceKind.VOLUME:
            data = await self.list_volumes(filters)
            return list((data or {}).get("Volumes") or [])
        result = await self._call("list_images", self.api.images, filters=filters, kind=kind)
        return list(result or [])

    async def list_networks(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        result = await self._call("list_networks", self.api.networks, filters=filters, kind=ResourceKind.NETWORK)
        return list(result or [])

    async def list_containers(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        result = await self._call(
            "list_containers", self.api.containers, all=True, filters=filters, kind=ResourceKind.CONTAINER
        )
        return list(result or [])

    async def list_volumes(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """List volumes; returns the daemon's ``{"Volumes": [...]}`` envelope."""
        return await self._call("list_volumes", self.api.volumes, filters=filters, kind=ResourceKind.VOLUME)

    # --------------------------------------------------------------- lifecycle
    async def create_network(self, name: str, driver: Optional[str] = None, **options) -> ResourceHandle:
        """Create a network and return a handle to it."""
        result = await self._call(
            "create_network",
            self.api.create_network,
            name,
            driver=driver,
            kind=ResourceKind.NETWORK,
            resource=name,
            **options,
        )
        attrs = {"Name": name, "Driver": driver}
        attrs.update(result or {})
        return ResourceHandle(kind=ResourceKind.NETWORK, ref=name, attrs=attrs)

    async def create_container(self, image: str, command: Any = None, **options) -> ResourceHandle:
        result = await self._call(
            "create_container",
            self.api.create_container,
            image,
            command=command,
            kind=ResourceKind.IMAGE,
            resource=image,
            **options,
        )
        return ResourceHandle(kind=ResourceKind.CONTAINER, ref=result["Id"], attrs=dict(result))

    async def start_container(self, container: Any, **options) -> None:
        ref = resolve_ref(container)
        await self._call(
            "start_container", self.api.start, ref, kind=ResourceKind.CONTAINER, resource=ref, **options
        )

    async def wait_container(self, container: Any) -> Dict[str, Any]:
        ref = resolve_ref(container)
        return await self._call("wait_container", self.api.wait, ref, kind=ResourceKind.CONTAINER, resource=ref)

    async def attach_container(self, container: Any) -> Iterator[bytes]:
        """Attach to a container's output; returns a chunk generator."""
        ref = resolve_ref(container)
        return await self._call(
            "attach_container",
            self.api.attach,
            ref,
            stdout=True,
            stderr=True,
            stream=True,
            logs=True,
            kind=ResourceKind.CONTAINER,
            resource=ref,
        )

    async def connect(self, network: Any, container: Any, **options) -> None:
        net_ref = resolve_ref(network)
        con_ref = resolve_ref(container)
        await self._call(
            "connect_network",
            self.api.connect_container_to_network,
            con_ref,
            net_ref,
            kind=ResourceKind.NETWORK,
            resource=net_ref,
            **options,
        )

    async def disconnect(self, network: Any, container: Any, force: bool = False) -> None:
        net_ref = resolve_ref(network)
        con_ref = resolve_ref(container)
        await self._call(
            "disconnect_network",
            self.api.disconnect_container_from_network,
            con_ref,
            net_ref,
            force=force,
            kind=ResourceKind.NETWORK,
            resource=net_ref,
        )

    # ------------------------------------------------------------------ streams
    async def get_archive(self, container: Any, path: str) -> Tuple[Iterator[bytes], Dict[str, Any]]:
        """Request a tar stream of ``path``; returns ``(chunks, stat)``."""
        ref = resolve_ref(container)
        return await self._call(
            "get_archive", self.api.get_archive, ref, path, kind=ResourceKind.CONTAINER, resource=ref
        )

    async def exec_create(self, container: Any, cmd: List[str], **options) -> str:
        """Create an exec session with stdout/stderr attached; returns its id."""
        ref = resolve_ref(container)
        options.setdefault("stdout", True)
        options.setdefault("stderr", True)
        result = await self._call(
            "exec_create", self.api.exec_create, ref, cmd, kind=ResourceKind.CONTAINER, resource=ref, **options
        )
        return result["Id"]

    async def exec_start(self, exec_id: str) -> Iterator[bytes]:
        return await self._call("exec_start", self.api.exec_start, exec_id, stream=True, resource=exec_id)

    async def exec_inspect(self, exec_id: str) -> Dict[str, Any]:
        return await self._call("exec_inspect", self.api.exec_inspect, exec_id, resource=exec_id)

    async def build(self, **options) -> Iterator[bytes]:
        """Submit a build; returns the raw line-delimited progress stream."""
        options.setdefault("rm", True)
        options["decode"] = False
        return await self._call("build_image", self.api.build, kind=ResourceKind.IMAGE, resource=options.get("tag"), **options)
