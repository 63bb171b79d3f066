"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from coordinator import config


def init_database(db_path: Optional[str] = None) -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = db_path or config.DATABASE_PATH
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id TEXT PRIMARY KEY,
                original_filename TEXT NOT NULL,
                original_size INTEGER NOT NULL CHECK (original_size >= 0),
                mime_type TEXT,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS parts (
                part_id TEXT PRIMARY KEY,
                file_id TEXT NOT NULL,
                part_index INTEGER NOT NULL CHECK (part_index >= 0),
                stored_name TEXT NOT NULL,
                external_handle TEXT NOT NULL,
                part_size INTEGER NOT NULL CHECK (part_size >= 0),
                sink_object_id TEXT,
                UNIQUE(file_id, part_index),
                FOREIGN KEY(file_id) REFERENCES files(file_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_created_at ON files(created_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Foreign keys are enabled per connection so that deleting a file
    cascades to its parts.
    """
    conn = sqlite3.connect(db_path or config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
