"""Small helpers shared by repositories and controllers."""
from typing import Any
from uuid import UUID


def preview(text: str, limit: int = 80) -> str:
    """Single-line preview of user text for log lines."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 1] + "…"


def is_valid_uuid(value: Any) -> bool:
    """True when ``value`` parses as a UUID; session ids come from clients."""
    if value is None:
        return False
    try:
        UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return False
    return True
