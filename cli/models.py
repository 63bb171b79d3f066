"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload one or more files."""

    paths: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List stored files."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class ResolveCommand:
    """Show the ordered part URLs of a file."""

    file_id: str
    command: Literal["resolve"] = "resolve"


@dataclass(frozen=True)
class MergeCommand:
    """Download the reassembled file."""

    file_id: str
    output_path: str | None = None
    command: Literal["merge"] = "merge"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a file and its parts."""

    file_id: str
    command: Literal["delete"] = "delete"


CommandRequest = (
    UploadCommand
    | ListCommand
    | ResolveCommand
    | MergeCommand
    | DeleteCommand
)
