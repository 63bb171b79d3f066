"""Part repository for database operations."""

import sqlite3
from typing import List

from common.logging_config import get_logger
from common.types import PartRecord

logger = get_logger(__name__)


class PartRepository:
    @staticmethod
    def create_parts(parts: List[PartRecord], conn: sqlite3.Connection) -> None:
        if not parts:
            return

        logger.debug(f"Inserting {len(parts)} part rows for file_id={parts[0].file_id}")
        conn.executemany(
            """
            INSERT INTO parts (part_id, file_id, part_index, stored_name, external_handle, part_size, sink_object_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    part.part_id,
                    part.file_id,
                    part.part_index,
                    part.stored_name,
                    part.external_handle,
                    part.part_size,
                    part.sink_object_id,
                )
                for part in parts
            ]
        )

    @staticmethod
    def get_parts_by_file(file_id: str, conn: sqlite3.Connection) -> List[PartRecord]:
        cursor = conn.execute(
            """
            SELECT part_id, file_id, part_index, stored_name, external_handle, part_size, sink_object_id
            FROM parts
            WHERE file_id = ?
            ORDER BY part_index ASC
            """,
            (file_id,)
        )

        return [
            PartRecord(
                part_id=row["part_id"],
                file_id=row["file_id"],
                part_index=row["part_index"],
                stored_name=row["stored_name"],
                external_handle=row["external_handle"],
                part_size=row["part_size"],
                sink_object_id=row["sink_object_id"],
            )
            for row in cursor.fetchall()
        ]
