"""Resource handles and inspection-derived models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(str, Enum):
    """Kinds of runtime resources the facade manages."""

    IMAGE = "image"
    CONTAINER = "container"
    NETWORK = "network"
    VOLUME = "volume"


class ContainerStatus(str, Enum):
    """Container states as reported by the daemon."""

    CREATED = "created"
    RESTARTING = "restarting"
    RUNNING = "running"
    PAUSED = "paused"
    EXITED = "exited"


NON_EXISTENT_STATUS = "non-existent"


@dataclass
class ResourceHandle:
    """Opaque caller-held reference to a runtime resource.

    ``ref`` is whatever identifies the resource to the daemon (name or id).
    ``attrs`` holds the descriptor fields when the handle came from a
    listing, empty otherwise.
    """

    kind: ResourceKind
    ref: str
    attrs: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.attrs.get("Id") or self.ref

    @property
    def name(self) -> Optional[str]:
        name = self.attrs.get("Name")
        if name:
            return name
        names = self.attrs.get("Names") or []
        if names:
            return names[0].lstrip("/")
        tags = self.attrs.get("RepoTags") or []
        return tags[0] if tags else None

    @classmethod
    def from_descriptor(cls, kind: ResourceKind, descriptor: Dict[str, Any]) -> "ResourceHandle":
        """Build a handle from a listing descriptor."""
        ref = descriptor.get("Id") or descriptor.get("Name") or ""
        return cls(kind=kind, ref=ref, attrs=dict(descriptor))


def resolve_ref(resource: Any) -> str:
    """Return the name-or-id the daemon should receive for ``resource``.

    Accepts a plain string, a ``ResourceHandle``, a descriptor dict or a
    docker SDK model object.
    """
    if isinstance(resource, str):
        return resource
    if isinstance(resource, ResourceHandle):
        return resource.id
    if isinstance(resource, dict):
        ref = resource.get("Id") or resource.get("Name")
        if ref:
            return ref
    ref = getattr(resource, "id", None)
    if ref:
        return ref
    raise TypeError(f"Cannot resolve a resource reference from {resource!r}")


class ExecOutcome(BaseModel):
    """Result of an exec session inspection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    exit_code: Optional[int] = Field(None, alias="ExitCode")
    running: bool = Field(False, alias="Running")
    exec_id: Optional[str] = Field(None, alias="ID")

    @property
    def succeeded(self) -> bool:
        """Success means the process has stopped and exited with code 0."""
        return not self.running and self.exit_code == 0


@dataclass
class RunResult:
    """Outcome of a docker-run style invocation."""

    status_code: int
    container: ResourceHandle
    error: Optional[str] = None


@dataclass
class ArchiveTransferJob:
    """Ephemeral record of one container-to-host archive copy."""

    src_path: str
    dst_dir: Path
    archive_name: str

    @property
    def archive_path(self) -> Path:
        return self.dst_dir / self.archive_name
