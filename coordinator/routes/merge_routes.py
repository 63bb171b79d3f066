"""Merge endpoints kept in the shape the browser form used."""

from fastapi import APIRouter, Depends, Response

from coordinator.exceptions import ValidationError
from coordinator.schemas.files import MergeLinksResponse, MergeRequest
from coordinator.service_locator import get_file_service
from coordinator.services.file_service import FileService
from coordinator.utils import content_disposition

router = APIRouter(prefix="/merge", tags=["Merge"])


@router.get("/{file_id}", response_model=MergeLinksResponse)
async def merge_links(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Return the original filename and the ordered part URLs so a client can merge itself.
    """
    resolved = file_service.resolve_file(file_id)
    return MergeLinksResponse(filename=resolved.filename, urls=resolved.handles)


@router.post("")
async def merge(
    request: MergeRequest,
    file_service: FileService = Depends(get_file_service),
):
    """
    Merge a file by id given as {"fileId": ...} and return it as an attachment.
    """
    if not request.file_id:
        raise ValidationError("File ID is required.")

    merged = await file_service.merge_file(request.file_id)

    return Response(
        content=merged.content,
        media_type=merged.media_type,
        headers={"Content-Disposition": content_disposition(merged.filename)},
    )
