"""ID generation for locally created records."""

from __future__ import annotations

from uuid import uuid4


def new_id() -> str:
    """Generate a new random UUID v4 string, the format backend rows use."""
    return str(uuid4())
