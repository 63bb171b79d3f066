"""Utility functions for CLI operations."""

import re
from urllib.parse import unquote
from typing import Optional

_FILENAME_STAR = re.compile(r"filename\*=UTF-8''([^;]+)", re.IGNORECASE)
_FILENAME = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the filename from a Content-Disposition header, preferring filename*.
    """
    if not header or 'attachment' not in header:
        return None

    match = _FILENAME_STAR.search(header)
    if match:
        return unquote(match.group(1))

    match = _FILENAME.search(header)
    if match:
        return match.group(1)
    return None
