"""Pydantic schemas for file operation endpoints."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadFileResponse(BaseModel):
    """Response model for file upload."""
    file_id: str
    filename: str
    size: int
    part_count: int


class FileMetadataResponse(BaseModel):
    """Response model for file metadata."""
    file_id: str
    filename: str
    size: int
    mime_type: Optional[str] = None
    created_at: str


class ListFilesResponse(BaseModel):
    """Response model for file listing."""
    files: List[FileMetadataResponse]


class ResolveFileResponse(BaseModel):
    """Response model for resolving a file to its ordered part handles."""
    file_id: str
    filename: str
    mime_type: Optional[str] = None
    size: int
    urls: List[str]


class MergeLinksResponse(BaseModel):
    """Response model for GET /merge/{file_id}."""
    filename: str
    urls: List[str]


class MergeRequest(BaseModel):
    """Request model for POST /merge."""
    model_config = ConfigDict(populate_by_name=True)

    file_id: Optional[str] = Field(default=None, alias="fileId")


class DeleteFileResponse(BaseModel):
    """Response model for file deletion."""
    file_id: str
    deleted_parts: int
