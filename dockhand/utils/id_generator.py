"""Identifier helpers."""

import uuid

from ..config import settings


def generate_archive_name(suffix: str = None) -> str:
    """Generate a collision-resistant temporary archive file name."""
    return f"{uuid.uuid4().hex}{suffix if suffix is not None else settings.archive_suffix}"
