"""Service layer for business logic."""

from coordinator.services.file_service import FileService
from coordinator.services.retrieval_service import RetrievalCoordinator
from coordinator.services.upload_service import UploadCoordinator, UploadResult, UploadState

__all__ = [
    "FileService",
    "RetrievalCoordinator",
    "UploadCoordinator",
    "UploadResult",
    "UploadState",
]
