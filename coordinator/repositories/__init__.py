"""Repository layer for data access."""

from coordinator.repositories.file_repository import FileRepository
from coordinator.repositories.part_repository import PartRepository

__all__ = [
    "FileRepository",
    "PartRepository",
]
