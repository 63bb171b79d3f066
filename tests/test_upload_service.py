"""Tests for the upload coordinator."""

import asyncio
import io
import logging

import httpx
import pytest

from conftest import FakeBlobSink
from coordinator.blob_sink_client import WebhookBlobSink
from coordinator.exceptions import (
    CapacityExceededError,
    CatalogError,
    PartialFailureError,
    UpstreamFailureError,
    ValidationError,
)
from coordinator.services.upload_service import UploadCoordinator, measure_stream

MiB = 1024 * 1024


class CountingSink(FakeBlobSink):
    """Records the highest number of concurrent store calls."""

    def __init__(self):
        super().__init__(max_delay=0.01, seed=3)
        self.in_flight = 0
        self.peak = 0

    async def store(self, name, data):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            return await super().store(name, data)
        finally:
            self.in_flight -= 1


class BlockingSink(FakeBlobSink):
    """Never finishes storing names listed in block_names."""

    def __init__(self, block_names):
        super().__init__()
        self.block_names = set(block_names)

    async def store(self, name, data):
        if name in self.block_names:
            await asyncio.Event().wait()
        return await super().store(name, data)


class FailingCatalog:
    def create_file_with_parts(self, file, parts):
        raise CatalogError("database is locked")


def test_measure_stream_keeps_position():
    stream = io.BytesIO(b"abcdefghij")
    stream.seek(4)

    assert measure_stream(stream) == 6
    assert stream.tell() == 4


@pytest.mark.asyncio
async def test_twenty_mib_file_is_stored_as_three_parts(fake_sink, catalog):
    data = bytes(range(256)) * (20 * MiB // 256)
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=8 * MiB, max_parts=50)

    result = await coordinator.upload(data, "video.mp4", "video/mp4")

    assert [p.part_size for p in result.parts] == [8 * MiB, 8 * MiB, 4 * MiB]
    assert [p.stored_name for p in result.parts] == [
        "video.mp4.part000",
        "video.mp4.part001",
        "video.mp4.part002",
    ]
    assert result.file.original_size == 20 * MiB
    assert result.file.mime_type == "video/mp4"

    parts = catalog.list_parts(result.file_id)
    assert [p.part_index for p in parts] == [0, 1, 2]
    assert b"".join(fake_sink.objects[p.external_handle] for p in parts) == data


@pytest.mark.asyncio
async def test_single_part_keeps_original_name(fake_sink, catalog):
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=100)

    result = await coordinator.upload(b"hello world", "notes.txt")

    assert len(result.parts) == 1
    assert result.parts[0].stored_name == "notes.txt"
    assert fake_sink.store_calls == ["notes.txt"]


@pytest.mark.asyncio
async def test_empty_file_is_one_empty_part(fake_sink, catalog):
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=100)

    result = await coordinator.upload(b"", "empty.txt")

    assert result.file.original_size == 0
    assert [p.part_size for p in result.parts] == [0]
    assert catalog.get_file(result.file_id).original_size == 0


@pytest.mark.asyncio
async def test_accepts_file_objects(fake_sink, catalog):
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=4)

    result = await coordinator.upload(io.BytesIO(b"0123456789"), "digits.txt")

    assert [p.part_size for p in result.parts] == [4, 4, 2]


@pytest.mark.asyncio
async def test_part_index_follows_offset_not_completion_order(slow_sink, catalog):
    data = bytes(range(200))
    coordinator = UploadCoordinator(slow_sink, catalog, max_part_size=10, concurrency=8)

    result = await coordinator.upload(data, "scrambled.bin")

    for part in catalog.list_parts(result.file_id):
        start = part.part_index * 10
        assert slow_sink.objects[part.external_handle] == data[start:start + 10]


@pytest.mark.asyncio
async def test_concurrency_is_bounded(catalog):
    sink = CountingSink()
    coordinator = UploadCoordinator(sink, catalog, max_part_size=10, concurrency=3)

    await coordinator.upload(b"x" * 200, "many.bin")

    assert len(sink.store_calls) == 20
    assert 1 <= sink.peak <= 3


@pytest.mark.asyncio
async def test_missing_filename_rejected(fake_sink, catalog):
    coordinator = UploadCoordinator(fake_sink, catalog)

    with pytest.raises(ValidationError):
        await coordinator.upload(b"data", "")

    assert fake_sink.store_calls == []


@pytest.mark.asyncio
async def test_over_cap_rejected_before_any_store(fake_sink, catalog):
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=10, max_parts=5)

    with pytest.raises(CapacityExceededError):
        await coordinator.upload(b"x" * 51, "big.bin")

    assert fake_sink.store_calls == []
    assert catalog.list_files() == []


@pytest.mark.asyncio
async def test_failure_of_only_part_is_upstream_failure(fake_sink, catalog, orphan_log):
    fake_sink.fail_names.add("doc.txt")
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=100, orphan_log=orphan_log)

    with pytest.raises(UpstreamFailureError) as exc_info:
        await coordinator.upload(b"content", "doc.txt")

    assert not isinstance(exc_info.value, PartialFailureError)
    assert catalog.list_files() == []
    assert orphan_log.load() == []


@pytest.mark.asyncio
async def test_partial_failure_aborts_whole_upload(fake_sink, catalog, orphan_log):
    fake_sink.fail_names.add("data.bin.part001")
    coordinator = UploadCoordinator(
        fake_sink, catalog, max_part_size=10, concurrency=1, orphan_log=orphan_log
    )

    with pytest.raises(PartialFailureError) as exc_info:
        await coordinator.upload(b"x" * 20, "data.bin")

    assert exc_info.value.stored_count == 1
    assert exc_info.value.failed_count == 1
    assert catalog.list_files() == []

    orphans = orphan_log.load()
    assert [entry["name"] for entry in orphans] == ["data.bin.part000"]
    assert orphans[0]["object_id"] == "msg-1"
    assert orphans[0]["reason"] == "part upload failed"


@pytest.mark.asyncio
async def test_catalog_failure_records_orphans(fake_sink, orphan_log):
    coordinator = UploadCoordinator(
        fake_sink, FailingCatalog(), max_part_size=10, orphan_log=orphan_log
    )

    with pytest.raises(CatalogError):
        await coordinator.upload(b"x" * 25, "data.bin")

    orphans = orphan_log.load()
    assert len(orphans) == 3
    assert {entry["reason"] for entry in orphans} == {"catalog commit failed"}


@pytest.mark.asyncio
async def test_cancelled_upload_leaves_no_catalog_entry(catalog, orphan_log):
    sink = BlockingSink(block_names={"data.bin.part001"})
    coordinator = UploadCoordinator(
        sink, catalog, max_part_size=10, concurrency=2, orphan_log=orphan_log
    )

    task = asyncio.create_task(coordinator.upload(b"x" * 20, "data.bin"))
    while not sink.objects:
        await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert catalog.list_files() == []
    assert [entry["name"] for entry in orphan_log.load()] == ["data.bin.part000"]


@pytest.mark.asyncio
async def test_failed_first_part_leaves_catalog_empty(fake_sink, catalog):
    fake_sink.fail_names.add("data.bin.part000")
    coordinator = UploadCoordinator(fake_sink, catalog, max_part_size=10)

    with pytest.raises(UpstreamFailureError):
        await coordinator.upload(b"x" * 20, "data.bin")

    assert catalog.list_files() == []


def test_invalid_limits_rejected(fake_sink, catalog):
    with pytest.raises(ValueError):
        UploadCoordinator(fake_sink, catalog, max_part_size=0)
    with pytest.raises(ValueError):
        UploadCoordinator(fake_sink, catalog, concurrency=0)


@pytest.mark.asyncio
async def test_timed_out_part_aborts_upload(catalog, orphan_log):
    def handler(request):
        body = request.read()
        if b'filename="data.bin.part001"' in body:
            raise httpx.ReadTimeout("read timed out", request=request)
        name = 'data.bin.part000'
        return httpx.Response(200, json={
            "id": name,
            "attachments": [{"filename": name, "size": 10, "url": f"https://cdn.example.test/{name}"}],
        })

    sink = WebhookBlobSink(
        "https://chat.example.test/api/webhooks/1/token",
        max_retries=1,
        retry_delay=0,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    coordinator = UploadCoordinator(
        sink, catalog, max_part_size=10, concurrency=1, orphan_log=orphan_log
    )

    with pytest.raises(UpstreamFailureError) as exc_info:
        await coordinator.upload(b"x" * 20, "data.bin")

    assert "timed out" in str(exc_info.value)
    assert catalog.list_files() == []
    assert [entry["object_id"] for entry in orphan_log.load()] == ["data.bin.part000"]


@pytest.mark.asyncio
async def test_state_transitions_are_logged_with_file_id(fake_sink, catalog, caplog):
    logger = logging.getLogger("coordinator.services.upload_service")
    logger.addHandler(caplog.handler)
    previous_level = logger.level
    logger.setLevel(logging.INFO)
    try:
        result = await UploadCoordinator(fake_sink, catalog, max_part_size=10).upload(b"x" * 15, "a.bin")
        fake_sink.fail_names.add("b.bin")
        with pytest.raises(UpstreamFailureError):
            await UploadCoordinator(fake_sink, catalog, max_part_size=10).upload(b"y", "b.bin")
    finally:
        logger.removeHandler(caplog.handler)
        logger.setLevel(previous_level)

    transitions = [r for r in caplog.records if " -> " in r.getMessage()]
    states = [r.getMessage().rsplit(" -> ", 1)[1] for r in transitions if result.file_id in r.getMessage()]
    assert states == ["pending", "splitting", "uploading", "catalog_commit", "complete"]
    assert all(r.levelno == logging.INFO for r in transitions if r.getMessage().endswith("complete"))

    aborted = [r for r in transitions if r.getMessage().endswith("aborted")]
    assert len(aborted) == 1
    assert aborted[0].levelno == logging.WARNING
