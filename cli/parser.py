"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DeleteCommand,
    ListCommand,
    MergeCommand,
    ResolveCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/List/Resolve/Merge/Delete)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "upload":
        return _parse_upload(args)
    elif command_name == "list":
        return _parse_list(args)
    elif command_name == "resolve":
        return ResolveCommand(file_id=_single_file_id("resolve", args))
    elif command_name == "merge":
        return _parse_merge(args)
    elif command_name == "delete":
        return DeleteCommand(file_id=_single_file_id("delete", args))
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [<path> ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file path")

    return UploadCommand(paths=tuple(args))


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list' command."""
    if args:
        raise ParseError("list takes no arguments")

    return ListCommand()


def _parse_merge(args: list[str]) -> MergeCommand:
    """Parse 'merge <file_id> [output_path]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("merge requires 1 or 2 arguments: <file_id> [output_path]")

    output_path = args[1] if len(args) > 1 else None
    return MergeCommand(file_id=args[0], output_path=output_path)


def _single_file_id(command_name: str, args: list[str]) -> str:
    if len(args) != 1:
        raise ParseError(f"{command_name} requires exactly 1 argument: <file_id>")

    return args[0]
