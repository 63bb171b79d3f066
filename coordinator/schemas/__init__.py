"""Pydantic schemas for API requests and responses."""

from coordinator.schemas.files import (
    UploadFileResponse,
    FileMetadataResponse,
    ListFilesResponse,
    ResolveFileResponse,
    MergeLinksResponse,
    MergeRequest,
    DeleteFileResponse,
)
from coordinator.schemas.common import ErrorResponse

__all__ = [
    "UploadFileResponse",
    "FileMetadataResponse",
    "ListFilesResponse",
    "ResolveFileResponse",
    "MergeLinksResponse",
    "MergeRequest",
    "DeleteFileResponse",
    "ErrorResponse",
]
