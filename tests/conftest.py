"""Shared pytest fixtures for all tests."""

import asyncio
import random
from typing import Dict, Set

import pytest

from cli.config import Config
from common.types import StoredObject
from coordinator.blob_sink_client import BlobSinkClient
from coordinator.catalog import SQLiteCatalogStore
from coordinator.exceptions import UpstreamFailureError
from coordinator.orphan_log import OrphanLog


class FakeBlobSink(BlobSinkClient):
    """
    In-memory blob sink with failure injection.

    Names listed in fail_names fail on store; handles listed in
    fail_handles fail on fetch. A max_delay adds a random sleep to every
    call so that completion order differs from submission order.
    """

    def __init__(self, max_delay: float = 0.0, seed: int = 0):
        self.objects: Dict[str, bytes] = {}
        self.names: Dict[str, str] = {}
        self.deleted: list = []
        self.fail_names: Set[str] = set()
        self.fail_handles: Set[str] = set()
        self.store_calls: list = []
        self.max_delay = max_delay
        self.closed = False
        self._random = random.Random(seed)
        self._counter = 0

    async def _delay(self) -> None:
        if self.max_delay:
            await asyncio.sleep(self._random.uniform(0, self.max_delay))
        else:
            await asyncio.sleep(0)

    async def store(self, name: str, data: bytes) -> StoredObject:
        self.store_calls.append(name)
        await self._delay()
        if name in self.fail_names:
            raise UpstreamFailureError(f"Sink rejected {name}")

        self._counter += 1
        object_id = f"msg-{self._counter}"
        handle = f"https://cdn.example.test/attachments/{object_id}/{name}"
        self.objects[handle] = bytes(data)
        self.names[object_id] = handle
        return StoredObject(handle=handle, filename=name, size=len(data), object_id=object_id)

    async def fetch(self, handle: str) -> bytes:
        await self._delay()
        if handle in self.fail_handles or handle not in self.objects:
            raise UpstreamFailureError("Failed to fetch a file part. Status: 404")
        return self.objects[handle]

    async def delete(self, object_id: str) -> bool:
        handle = self.names.pop(object_id, None)
        if handle is not None:
            self.objects.pop(handle, None)
        self.deleted.append(object_id)
        return True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_sink():
    """In-memory sink with no delays."""
    return FakeBlobSink()


@pytest.fixture
def slow_sink():
    """In-memory sink with random per-call delays."""
    return FakeBlobSink(max_delay=0.02, seed=7)


@pytest.fixture
def catalog(tmp_path) -> SQLiteCatalogStore:
    """
    Create a temporary SQLite catalog for each test.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Initialized SQLiteCatalogStore
    """
    store = SQLiteCatalogStore(str(tmp_path / "catalog.db"))
    store.initialize()
    return store


@pytest.fixture
def orphan_log(tmp_path) -> OrphanLog:
    return OrphanLog(tmp_path / "orphaned_parts.json")


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .partvault directory
    """
    config_dir = tmp_path / '.partvault'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir, monkeypatch):
    """
    Create temporary config instance, unaffected by PV_* overrides in the
    caller's environment.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    monkeypatch.delenv('PV_COORDINATOR_URL', raising=False)
    monkeypatch.delenv('PV_DOWNLOAD_DIR', raising=False)
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
