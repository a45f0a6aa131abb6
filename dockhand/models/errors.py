"""Error models and exception classes for dockhand."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorType(str, Enum):
    """Error type enumeration."""

    RESOURCE_NOT_FOUND = "resource_not_found"
    AMBIGUOUS_MATCH = "ambiguous_match"
    RUNTIME_API = "runtime_api"
    STREAM = "stream"
    EXTRACTION = "extraction"
    EXEC_FAILED = "exec_failed"
    BUILD_FAILED = "build_failed"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Offending field or resource attribute")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


# Custom Exception Classes


class DockhandError(Exception):
    """Base exception for every failure surfaced by the facade."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.RUNTIME_API,
        details: Optional[List[ErrorDetail]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or []
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the error for structured log records."""
        data: Dict[str, Any] = {
            "error": self.message,
            "error_type": self.error_type.value,
        }
        if self.details:
            data["details"] = [d.model_dump(exclude_none=True) for d in self.details]
        if self.context:
            data.update(self.context)
        return data


class RuntimeAPIError(DockhandError):
    """The runtime client call failed for a reason opaque to the facade."""

    def __init__(self, message: str = "Runtime API call failed", **kwargs):
        kwargs.setdefault("error_type", ErrorType.RUNTIME_API)
        super().__init__(message=message, **kwargs)


class NotFoundError(RuntimeAPIError):
    """Inspect or lookup found zero matches."""

    def __init__(self, resource: str, resource_id: str = None, **kwargs):
        message = f"{resource} not found"
        if resource_id:
            message += f": {resource_id}"
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message=message, error_type=ErrorType.RESOURCE_NOT_FOUND, **kwargs)


class AmbiguousMatchError(DockhandError):
    """Name-based lookup matched more than one resource."""

    def __init__(self, resource: str, name: str, matches: int, **kwargs):
        self.resource = resource
        self.name = name
        self.matches = matches
        super().__init__(
            message=f"More than one {resource} exists with name {name} ({matches} matches)",
            error_type=ErrorType.AMBIGUOUS_MATCH,
            **kwargs,
        )


class StreamError(DockhandError):
    """A byte stream failed before reaching a terminal state."""

    def __init__(self, message: str = "Stream failed", **kwargs):
        super().__init__(message=message, error_type=ErrorType.STREAM, **kwargs)


class ExtractionError(DockhandError):
    """Archive extraction failed after a successful transfer."""

    def __init__(self, message: str = "Archive extraction failed", **kwargs):
        super().__init__(message=message, error_type=ErrorType.EXTRACTION, **kwargs)


class ExecFailure(DockhandError):
    """Exec session still running, exited non-zero, or could not be inspected."""

    def __init__(self, message: str = "Exec failed", exit_code: Optional[int] = None, **kwargs):
        self.exit_code = exit_code
        super().__init__(message=message, error_type=ErrorType.EXEC_FAILED, **kwargs)


class BuildFailure(DockhandError):
    """Build progress reported an error."""

    def __init__(self, message: str = "Image build failed", **kwargs):
        super().__init__(message=message, error_type=ErrorType.BUILD_FAILED, **kwargs)
