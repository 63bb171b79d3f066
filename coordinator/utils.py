"""Utility helper functions for the coordinator."""

import uuid
from datetime import datetime, timezone
from urllib.parse import quote


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header value for a filename.

    Non-ASCII names get an RFC 5987 filename* parameter next to an ASCII fallback.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
