"""File repository for database operations."""

import sqlite3
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from common.types import FileRecord

logger = get_logger(__name__)


def _row_to_file(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        file_id=row["file_id"],
        original_filename=row["original_filename"],
        original_size=row["original_size"],
        mime_type=row["mime_type"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class FileRepository:
    @staticmethod
    def create_file(file: FileRecord, conn: sqlite3.Connection) -> None:
        logger.debug(f"Inserting file row [file_id={file.file_id}]")
        conn.execute(
            """
            INSERT INTO files (file_id, original_filename, original_size, mime_type, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                file.file_id,
                file.original_filename,
                file.original_size,
                file.mime_type,
                file.created_at.isoformat(),
            )
        )

    @staticmethod
    def get_by_id(file_id: str, conn: sqlite3.Connection) -> Optional[FileRecord]:
        cursor = conn.execute(
            """
            SELECT file_id, original_filename, original_size, mime_type, created_at
            FROM files WHERE file_id = ?
            """,
            (file_id,)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return _row_to_file(row)

    @staticmethod
    def list_files(conn: sqlite3.Connection, limit: int = 100, offset: int = 0) -> List[FileRecord]:
        cursor = conn.execute(
            """
            SELECT file_id, original_filename, original_size, mime_type, created_at
            FROM files
            ORDER BY created_at DESC
            LIMIT ? OFFSET ?
            """,
            (limit, offset)
        )
        return [_row_to_file(row) for row in cursor.fetchall()]

    @staticmethod
    def delete_file(file_id: str, conn: sqlite3.Connection) -> bool:
        """
        Delete a file row. Its parts go with it through ON DELETE CASCADE.

        Returns:
            True if a row was deleted
        """
        logger.debug(f"Deleting file [file_id={file_id}]")
        cursor = conn.execute("DELETE FROM files WHERE file_id = ?", (file_id,))
        return cursor.rowcount > 0
