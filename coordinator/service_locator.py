"""Service locator for the file service and its background cleaner."""

from typing import Optional

from coordinator.cleanup_task import OrphanedPartCleaner
from coordinator.services.file_service import FileService

_file_service: Optional[FileService] = None
_cleaner: Optional[OrphanedPartCleaner] = None


def set_file_service(service: Optional[FileService]):
    """Set global file service instance"""
    global _file_service
    _file_service = service


def get_file_service() -> FileService:
    """Get global file service instance"""
    if _file_service is None:
        raise RuntimeError("File service has not been initialized")
    return _file_service


def has_file_service() -> bool:
    return _file_service is not None


def set_cleaner(cleaner: Optional[OrphanedPartCleaner]):
    """Set global orphaned part cleaner instance"""
    global _cleaner
    _cleaner = cleaner


def get_cleaner() -> Optional[OrphanedPartCleaner]:
    """Get global orphaned part cleaner instance"""
    return _cleaner
