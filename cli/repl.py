"""Interactive prompt for uploading, inspecting, merging and deleting files."""

import dataclasses
import os
import sys
from typing import Callable, Dict, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    get_client,
    handle_delete,
    handle_list,
    handle_merge,
    handle_resolve,
    handle_upload,
)
from cli.constants import (
    COMMANDS,
    HELP_TEXT,
    LAST_FILE_ALIAS,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.coordinator_client import CoordinatorClient
from cli.models import (
    DeleteCommand,
    ListCommand,
    MergeCommand,
    ResolveCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command

HANDLERS: Dict[type, Callable] = {
    UploadCommand: handle_upload,
    ListCommand: handle_list,
    ResolveCommand: handle_resolve,
    MergeCommand: handle_merge,
    DeleteCommand: handle_delete,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    os.system("cls" if sys.platform == "win32" else "clear")


def banner(client: CoordinatorClient) -> str:
    """Logo, title and the coordinator's reachability."""
    base_url = client.config.get_base_url()
    if client.check_health():
        status = f"Coordinator: {base_url} (healthy)"
    else:
        status = f"Coordinator: {base_url} is not reachable; commands will fail until it is up."
    return "\n".join([LOGO, WELCOME_TITLE, status, WELCOME_HELP])


def expand_last_file(cmd_obj, client: CoordinatorClient):
    """
    Replace the 'last' alias with the id of the most recent upload.

    Raises:
        ParseError: If 'last' is used before anything was uploaded
    """
    if getattr(cmd_obj, "file_id", None) != LAST_FILE_ALIAS:
        return cmd_obj
    if client.last_file_id is None:
        raise ParseError(f"'{LAST_FILE_ALIAS}' refers to the last upload, but nothing was uploaded yet")
    return dataclasses.replace(cmd_obj, file_id=client.last_file_id)


def dispatch_command(cmd_obj, client: Optional[CoordinatorClient] = None) -> str:
    """Run a parsed command against the coordinator and return its output."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"

    client = client or get_client()
    return handler(expand_last_file(cmd_obj, client), client=client)


def run_line(line: str, client: CoordinatorClient) -> Optional[str]:
    """
    Handle one line of input.

    Returns:
        Text to print, or None to leave the REPL
    """
    text = line.strip()
    if text == "exit":
        return None
    if text == "help":
        return HELP_TEXT
    if text == "clear":
        clear_screen()
        return banner(client)

    try:
        return dispatch_command(parse_command(text), client)
    except ParseError as e:
        return f"Error: {e}"


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    client = get_client()
    session: PromptSession = PromptSession(
        completer=WordCompleter(COMMANDS + [LAST_FILE_ALIAS], ignore_case=True),
        history=InMemoryHistory(),
        style=STYLE,
    )

    clear_screen()
    print(banner(client))

    while True:
        try:
            line = session.prompt([("class:prompt", PROMPT_TEXT)])
        except KeyboardInterrupt:
            continue
        except EOFError:
            break

        if not line.strip():
            continue

        output = run_line(line, client)
        if output is None:
            break
        print(output)

    print("Goodbye!")
