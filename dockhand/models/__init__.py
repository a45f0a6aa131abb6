"""Data models for dockhand."""

from .errors import (
    ErrorType,
    ErrorDetail,
    DockhandError,
    RuntimeAPIError,
    NotFoundError,
    AmbiguousMatchError,
    StreamError,
    ExtractionError,
    ExecFailure,
    BuildFailure,
)
from .resources import (
    ResourceKind,
    ResourceHandle,
    ContainerStatus,
    NON_EXISTENT_STATUS,
    ExecOutcome,
    RunResult,
    ArchiveTransferJob,
    resolve_ref,
)

__all__ = [
    # Errors
    "ErrorType",
    "ErrorDetail",
    "DockhandError",
    "RuntimeAPIError",
    "NotFoundError",
    "AmbiguousMatchError",
    "StreamError",
    "ExtractionError",
    "ExecFailure",
    "BuildFailure",
    # Resources
    "ResourceKind",
    "ResourceHandle",
    "ContainerStatus",
    "NON_EXISTENT_STATUS",
    "ExecOutcome",
    "RunResult",
    "ArchiveTransferJob",
    "resolve_ref",
]
