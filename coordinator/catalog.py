"""Metadata catalog: durable store of file records and their ordered parts."""

import sqlite3
from abc import ABC, abstractmethod
from typing import List, Optional

from common.logging_config import get_logger
from common.types import FileRecord, PartRecord
from coordinator.database import get_db_connection, init_database
from coordinator.exceptions import CatalogError, NotFoundError
from coordinator.repositories.file_repository import FileRepository
from coordinator.repositories.part_repository import PartRepository

logger = get_logger(__name__)


def check_part_set(file: FileRecord, parts: List[PartRecord]) -> None:
    """
    Verify that a part set fully and exactly describes a file.

    Raises:
        CatalogError: If the parts are empty, belong to another file, have
            gaps or duplicate indices, or do not add up to the file size
    """
    if not parts:
        raise CatalogError(f"File {file.file_id} has no parts")

    foreign = [p.part_index for p in parts if p.file_id != file.file_id]
    if foreign:
        raise CatalogError(f"Parts {foreign} do not belong to file {file.file_id}")

    indices = sorted(p.part_index for p in parts)
    if indices != list(range(len(parts))):
        raise CatalogError(
            f"Part indices for file {file.file_id} are not contiguous from 0: {indices}"
        )

    total = sum(p.part_size for p in parts)
    if total != file.original_size:
        raise CatalogError(
            f"Part sizes for file {file.file_id} add up to {total}, expected {file.original_size}"
        )


class CatalogStore(ABC):
    """
    Abstract metadata catalog used by the upload and retrieval coordinators.
    """

    @abstractmethod
    def create_file_with_parts(self, file: FileRecord, parts: List[PartRecord]) -> None:
        """Atomically store a file and every one of its parts, or nothing."""

    @abstractmethod
    def get_file(self, file_id: str) -> FileRecord:
        """Return the file record or raise NotFoundError."""

    @abstractmethod
    def list_parts(self, file_id: str) -> List[PartRecord]:
        """Return parts ordered by part_index, or raise NotFoundError if there are none."""

    @abstractmethod
    def delete_file(self, file_id: str) -> List[PartRecord]:
        """Delete a file and its parts, returning the deleted parts."""

    @abstractmethod
    def list_files(self, limit: int = 100, offset: int = 0) -> List[FileRecord]:
        """Return file records, newest first."""


class SQLiteCatalogStore(CatalogStore):
    """
    CatalogStore backed by a SQLite database file.

    Every call opens its own connection, so uploads of different files
    never share transaction state.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def initialize(self) -> None:
        init_database(self.db_path)

    def create_file_with_parts(self, file: FileRecord, parts: List[PartRecord]) -> None:
        check_part_set(file, parts)

        try:
            with get_db_connection(self.db_path) as conn:
                try:
                    FileRepository.create_file(file, conn)
                    PartRepository.create_parts(parts, conn)
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except sqlite3.Error as e:
            logger.error(f"Catalog commit failed for file {file.file_id}: {e}", exc_info=True)
            raise CatalogError(f"Failed to record file {file.file_id}: {e}") from e

        logger.info(f"Committed file {file.file_id} with {len(parts)} parts")

    def get_file(self, file_id: str) -> FileRecord:
        try:
            with get_db_connection(self.db_path) as conn:
                file = FileRepository.get_by_id(file_id, conn)
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to read file {file_id}: {e}") from e

        if file is None:
            raise NotFoundError(f"File {file_id} not found")
        return file

    def list_parts(self, file_id: str) -> List[PartRecord]:
        try:
            with get_db_connection(self.db_path) as conn:
                parts = PartRepository.get_parts_by_file(file_id, conn)
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to read parts of file {file_id}: {e}") from e

        if not parts:
            raise NotFoundError(f"File parts not found for file {file_id}")
        return parts

    def delete_file(self, file_id: str) -> List[PartRecord]:
        try:
            with get_db_connection(self.db_path) as conn:
                try:
                    parts = PartRepository.get_parts_by_file(file_id, conn)
                    deleted = FileRepository.delete_file(file_id, conn)
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except sqlite3.Error as e:
            logger.error(f"Catalog delete failed for file {file_id}: {e}", exc_info=True)
            raise CatalogError(f"Failed to delete file {file_id}: {e}") from e

        if not deleted:
            raise NotFoundError(f"File {file_id} not found")

        logger.info(f"Deleted file {file_id} and {len(parts)} parts")
        return parts

    def list_files(self, limit: int = 100, offset: int = 0) -> List[FileRecord]:
        try:
            with get_db_connection(self.db_path) as conn:
                return FileRepository.list_files(conn, limit=limit, offset=offset)
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to list files: {e}") from e
