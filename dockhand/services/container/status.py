"""Container status enrichment.

``inspect_container_status`` never fails: a container that cannot be
inspected is reported as::

    {"State": {"Running": False, "Status": "non-existent", "Duration": "N/A"}}
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import dateutil.parser
import structlog

from ...models.resources import NON_EXISTENT_STATUS
from .facade import RuntimeFacade


def format_elapsed(seconds: float) -> str:
    """Render an elapsed time, escalating units: s < 120, m < 120, h < 48, then d."""
    if seconds < 0:
        return ""
    if seconds < 120:
        return f"{seconds:.2f}s ago"
    minutes = seconds / 60
    if minutes < 120:
        return f"{minutes:.2f}m ago"
    hours = minutes / 60
    if hours < 48:
        return f"{hours:.2f}h ago"
    days = hours / 24
    return f"{days:.2f}d ago"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a daemon timestamp (RFC 3339, nanosecond precision) as UTC."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = dateutil.parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def describe_since(value: Any, now: Optional[datetime] = None) -> str:
    """Human-readable time elapsed since ``value``.

    Unparsable timestamps, pre-epoch placeholders (the daemon reports
    ``0001-01-01T00:00:00Z`` for "never") and timestamps in the future all
    yield an empty string.
    """
    moment = parse_timestamp(value)
    if moment is None or moment < datetime(1970, 1, 1, tzinfo=timezone.utc):
        return ""
    now = now or datetime.now(timezone.utc)
    return format_elapsed((now - moment).total_seconds())


def non_existent_status() -> Dict[str, Any]:
    return {
        "State": {
            "Running": False,
            "Status": NON_EXISTENT_STATUS,
            "Duration": "N/A",
        }
    }


class StatusEnricher:
    """Adds a ``State.Duration`` field to container inspections."""

    def __init__(self, facade: RuntimeFacade, logger: Optional[structlog.BoundLogger] = None):
        self.facade = facade
        self._logger = logger or structlog.get_logger(__name__)

    async def inspect_container_status(self, name: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Inspect ``name`` and add the time since its last start or finish.

        ``Duration`` counts from ``StartedAt`` while the container runs and
        from ``FinishedAt`` otherwise.
        """
        try:
            container = await self.facade.inspect_container(name)
            state = container["State"]
            since = state.get("StartedAt") if state.get("Running") else state.get("FinishedAt")
            state["Duration"] = describe_since(since, now=now)
            return container
        except Exception as e:
            self._logger.debug(f"Inspecting container {name}: failed. {e}")
            return non_existent_status()
