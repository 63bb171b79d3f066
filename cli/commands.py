"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.coordinator_client import CoordinatorClient
from cli.models import (
    DeleteCommand,
    ListCommand,
    MergeCommand,
    ResolveCommand,
    UploadCommand,
)

logger = get_logger(__name__)


_client: Optional[CoordinatorClient] = None


def get_client() -> CoordinatorClient:
    """
    Get or create global CoordinatorClient instance.

    Returns:
        CoordinatorClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new CoordinatorClient instance")
        config = Config(Path.home() / '.partvault' / 'config.json')
        _client = CoordinatorClient(config)
    return _client


def handle_upload(cmd: UploadCommand, client: Optional[CoordinatorClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file paths
        client: Optional CoordinatorClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    return client.upload_files(list(cmd.paths))


def handle_list(cmd: ListCommand, client: Optional[CoordinatorClient] = None) -> str:
    """Handle 'list' command."""
    if client is None:
        client = get_client()
    return client.list_files()


def handle_resolve(cmd: ResolveCommand, client: Optional[CoordinatorClient] = None) -> str:
    """Handle 'resolve' command."""
    if client is None:
        client = get_client()
    return client.resolve(cmd.file_id)


def handle_merge(cmd: MergeCommand, client: Optional[CoordinatorClient] = None) -> str:
    """Handle 'merge' command."""
    if client is None:
        client = get_client()
    return client.merge(cmd.file_id, cmd.output_path)


def handle_delete(cmd: DeleteCommand, client: Optional[CoordinatorClient] = None) -> str:
    """Handle 'delete' command."""
    if client is None:
        client = get_client()
    return client.delete(cmd.file_id)
