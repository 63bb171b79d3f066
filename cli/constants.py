"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "list", "resolve", "merge", "delete", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#5865F2 bold",
        "command": "#0088ff bold",
    }
)

BLURPLE = "\033[38;2;88;101;242m"
RESET = "\033[0m"

LOGO = f"""{BLURPLE}
  ___  __ _ _ __| |___   ____ _ _   _| | |_
 | '_ \\/ _` | '__| __\\ \\ / / _` | | | | | __|
 | |_) | (_| | |  | |_ \\ V / (_| | |_| | | |_
 | .__/ \\__,_|_|   \\__| \\_/ \\__,_|\\__,_|_|\\__|
 |_|
{RESET}"""

WELCOME_TITLE = "partvault CLI - store large files as ordered parts"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "partvault> "

DEFAULT_DOWNLOAD_DIR = "downloads"

LAST_FILE_ALIAS = "last"  # stands for the id of the most recent upload in this session

HELP_TEXT = """Available commands:
  upload <path> [<path> ...]          Upload one or more files
  list                                List stored files, newest first
  resolve <file_id>                   Show the filename and ordered part URLs
  merge <file_id> [output_path]       Download the reassembled file (default: downloads/<filename>)
  delete <file_id>                    Delete a file and all of its parts
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Wherever a <file_id> is expected, "last" means the file uploaded most recently
in this session.

Examples:
  upload ~/videos/talk.mp4
  resolve last
  merge 3f2b8c9e-1d4a-4c55-9a8e-0c9d6c1b2a77 downloads/talk.mp4"""
