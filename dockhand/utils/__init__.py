"""Utility modules for dockhand."""

from .logging import setup_logging
from .streams import StreamSettlement, pump_stream, tee_to

__all__ = [
    "setup_logging",
    "StreamSettlement",
    "pump_stream",
    "tee_to",
]
