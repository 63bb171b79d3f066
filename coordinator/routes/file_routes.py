"""File operation API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from coordinator.exceptions import ValidationError
from coordinator.schemas.files import (
    DeleteFileResponse,
    FileMetadataResponse,
    ListFilesResponse,
    ResolveFileResponse,
    UploadFileResponse,
)
from coordinator.service_locator import get_file_service
from coordinator.services.file_service import FileService
from coordinator.utils import content_disposition

router = APIRouter(prefix="/files", tags=["Files"])


@router.post("", response_model=UploadFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    file_service: FileService = Depends(get_file_service),
):
    """
    Upload a file; it is split into parts and stored in the blob sink.

    Parameters:
        - file: File to upload (multipart/form-data)

    Returns:
        - file_id: UUID of uploaded file
        - filename: Original filename
        - size: File size in bytes
        - part_count: Number of parts stored

    Raises:
        - 400: No file payload
        - 413: File over the aggregate size cap
        - 500: Catalog error
        - 502: Blob sink failure (whole upload aborted)
    """
    if file is None or not file.filename:
        raise ValidationError("File field is missing or invalid file selected.")

    result = await file_service.upload_file(file.file, file.filename, file.content_type)

    return UploadFileResponse(
        file_id=result.file_id,
        filename=result.file.original_filename,
        size=result.file.original_size,
        part_count=len(result.parts),
    )


@router.get("", response_model=ListFilesResponse)
async def list_files(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    file_service: FileService = Depends(get_file_service),
):
    """
    List stored files, newest first.
    """
    files = file_service.list_files(limit=limit, offset=offset)

    return ListFilesResponse(files=[
        FileMetadataResponse(
            file_id=file.file_id,
            filename=file.original_filename,
            size=file.original_size,
            mime_type=file.mime_type,
            created_at=file.created_at.isoformat(),
        )
        for file in files
    ])


@router.get("/{file_id}", response_model=ResolveFileResponse)
async def resolve_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Resolve a file to the ordered handles of its parts.

    Raises:
        - 404: File not found or has no parts
    """
    resolved = file_service.resolve_file(file_id)

    return ResolveFileResponse(
        file_id=resolved.file_id,
        filename=resolved.filename,
        mime_type=resolved.mime_type,
        size=resolved.size,
        urls=resolved.handles,
    )


@router.get("/{file_id}/content")
async def merge_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Reassemble a file from its parts and return the original bytes.

    Raises:
        - 404: File not found or has no parts
        - 502: A part could not be fetched
    """
    merged = await file_service.merge_file(file_id)

    return Response(
        content=merged.content,
        media_type=merged.media_type,
        headers={"Content-Disposition": content_disposition(merged.filename)},
    )


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Delete a file and all of its parts.

    Raises:
        - 404: File not found
    """
    parts = file_service.delete_file(file_id)

    return DeleteFileResponse(file_id=file_id, deleted_parts=len(parts))
