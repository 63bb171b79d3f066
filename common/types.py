"""Shared data type definitions (FileRecord, PartRecord, StoredObject, etc.)."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.constants import DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata for one logical uploaded file.
    """
    file_id: str
    original_filename: str
    original_size: int
    mime_type: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class PartRecord:
    """
    Metadata for a single stored part of a file.
    """
    part_id: str
    file_id: str
    part_index: int
    stored_name: str
    external_handle: str
    part_size: int
    sink_object_id: Optional[str] = None


@dataclass(frozen=True)
class StoredObject:
    """
    Confirmation returned by a blob sink after storing one part.
    """
    handle: str
    filename: str
    size: int
    object_id: Optional[str] = None


@dataclass(frozen=True)
class ResolvedFile:
    """
    File metadata plus the ordered handles of its parts.
    """
    file_id: str
    filename: str
    mime_type: Optional[str]
    size: int
    handles: List[str]


@dataclass(frozen=True)
class MergedFile:
    """
    Reconstructed file content.
    """
    file_id: str
    filename: str
    mime_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def media_type(self) -> str:
        return self.mime_type or DEFAULT_MIME_TYPE
