"""Upload coordinator: split, store parts concurrently, commit all-or-nothing."""

import asyncio
import io
import os
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Dict, List, Optional, Union

from common.constants import MAX_PART_SIZE_BYTES, MAX_PARTS_PER_FILE, UPLOAD_CONCURRENCY
from common.logging_config import get_logger
from common.types import FileRecord, PartRecord, StoredObject
from coordinator.blob_sink_client import BlobSinkClient
from coordinator.catalog import CatalogStore
from coordinator.exceptions import (
    CatalogError,
    PartialFailureError,
    UpstreamFailureError,
    ValidationError,
)
from coordinator.orphan_log import OrphanLog
from coordinator.splitter import ChunkRange, part_name, read_chunks, split
from coordinator.utils import generate_uuid, utc_now

logger = get_logger(__name__)


class UploadState(str, Enum):
    PENDING = "pending"
    SPLITTING = "splitting"
    UPLOADING = "uploading"
    CATALOG_COMMIT = "catalog_commit"
    COMPLETE = "complete"
    ABORTED = "aborted"


@dataclass(frozen=True)
class UploadResult:
    file: FileRecord
    parts: List[PartRecord]

    @property
    def file_id(self) -> str:
        return self.file.file_id


def measure_stream(stream: BinaryIO) -> int:
    """
    Number of bytes between the current position and the end of a seekable stream.
    """
    position = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return end - position


class UploadCoordinator:
    """
    Drives the splitter and the blob sink for one upload at a time per call.

    Parts are stored concurrently (bounded by `concurrency`) and the catalog
    is written once, only after every part has been stored.
    """

    def __init__(
        self,
        sink: BlobSinkClient,
        catalog: CatalogStore,
        max_part_size: int = MAX_PART_SIZE_BYTES,
        max_parts: int = MAX_PARTS_PER_FILE,
        concurrency: int = UPLOAD_CONCURRENCY,
        orphan_log: Optional[OrphanLog] = None,
    ):
        if max_part_size <= 0 or max_parts <= 0:
            raise ValueError("max_part_size and max_parts must be positive")
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")

        self.sink = sink
        self.catalog = catalog
        self.max_part_size = max_part_size
        self.max_parts = max_parts
        self.concurrency = concurrency
        self.orphan_log = orphan_log

    @property
    def max_total_size(self) -> int:
        return self.max_part_size * self.max_parts

    async def upload(
        self,
        stream: Union[BinaryIO, bytes],
        filename: str,
        mime_type: Optional[str] = None,
    ) -> UploadResult:
        """
        Store a stream as ordered parts and record it in the catalog.

        Args:
            stream: Seekable binary file object, or raw bytes
            filename: Original filename
            mime_type: Optional MIME type recorded with the file

        Returns:
            UploadResult with the committed file and part records

        Raises:
            ValidationError: If the filename is missing
            CapacityExceededError: If the stream is over the aggregate cap
            UpstreamFailureError: If a part could not be stored
            PartialFailureError: If some parts were stored before another failed
            CatalogError: If the final catalog write failed
        """
        if not filename or not filename.strip():
            raise ValidationError("File field is missing or invalid file selected.")

        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(stream)

        file_id = generate_uuid()
        self._transition(file_id, UploadState.PENDING)

        size = measure_stream(stream)
        self._transition(file_id, UploadState.SPLITTING)
        ranges = split(size, self.max_part_size, self.max_total_size)

        logger.info(
            f"Uploaded file name: {filename}, type: {mime_type}, size: {size} bytes, "
            f"parts: {len(ranges)} [file_id={file_id}]"
        )

        self._transition(file_id, UploadState.UPLOADING)
        stored = await self._store_parts(file_id, filename, stream, ranges)

        self._transition(file_id, UploadState.CATALOG_COMMIT)
        file = FileRecord(
            file_id=file_id,
            original_filename=filename,
            original_size=size,
            mime_type=mime_type or None,
            created_at=utc_now(),
        )
        parts = [
            PartRecord(
                part_id=generate_uuid(),
                file_id=file_id,
                part_index=chunk.index,
                stored_name=obj.filename,
                external_handle=obj.handle,
                part_size=obj.size,
                sink_object_id=obj.object_id,
            )
            for chunk, obj in zip(ranges, stored)
        ]

        try:
            self.catalog.create_file_with_parts(file, parts)
        except Exception as e:
            self._abort(file_id, stored, "catalog commit failed")
            if isinstance(e, CatalogError):
                raise
            raise CatalogError(f"Failed to record file {file_id}: {e}") from e

        self._transition(file_id, UploadState.COMPLETE)
        logger.info(f"File(s) uploaded successfully! File ID: {file_id} ({len(parts)} parts)")
        return UploadResult(file=file, parts=parts)

    async def _store_parts(
        self,
        file_id: str,
        filename: str,
        stream: BinaryIO,
        ranges: List[ChunkRange],
    ) -> List[StoredObject]:
        """
        Store every range concurrently and return the confirmations in index order.

        The first failure cancels all outstanding part tasks.
        """
        part_count = len(ranges)
        chunks = list(read_chunks(stream, ranges))
        semaphore = asyncio.Semaphore(self.concurrency)
        stored: Dict[int, StoredObject] = {}

        async def store_part(chunk: ChunkRange, data: bytes) -> None:
            name = part_name(filename, chunk.index, part_count)
            async with semaphore:
                obj = await self.sink.store(name, data)
            stored[chunk.index] = obj
            logger.info(f"Stored part {chunk.index + 1}/{part_count} as {name} for file {file_id}")

        tasks = [asyncio.create_task(store_part(chunk, data)) for chunk, data in chunks]

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            await self._cancel_tasks(tasks)
            self._abort(file_id, list(stored.values()), "upload cancelled")
            raise

        failures = [
            task.exception() for task in done
            if not task.cancelled() and task.exception() is not None
        ]
        if not failures:
            return [stored[index] for index in range(part_count)]

        await self._cancel_tasks(pending)
        stored_objects = list(stored.values())
        self._abort(file_id, stored_objects, "part upload failed")

        first = failures[0]
        logger.error(f"Failed to upload file {file_id}: {first}")

        if stored_objects:
            raise PartialFailureError(
                f"Failed to upload file(s): {len(stored_objects)} of {part_count} parts were stored "
                f"before a part failed: {first}",
                stored_count=len(stored_objects),
                failed_count=part_count - len(stored_objects),
            ) from first
        if isinstance(first, UpstreamFailureError):
            raise first
        raise UpstreamFailureError(f"Failed to upload file(s): {first}") from first

    @staticmethod
    async def _cancel_tasks(tasks) -> None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _abort(self, file_id: str, stored: List[StoredObject], reason: str) -> None:
        self._transition(file_id, UploadState.ABORTED)
        if not stored:
            return

        logger.warning(
            f"Upload of file {file_id} aborted ({reason}); "
            f"{len(stored)} stored parts are now orphaned in the sink"
        )
        if self.orphan_log is not None:
            self.orphan_log.record_stored(file_id, stored, reason)

    @staticmethod
    def _transition(file_id: str, state: UploadState) -> None:
        if state is UploadState.ABORTED:
            logger.warning(f"Upload {file_id} -> {state.value}")
        else:
            logger.info(f"Upload {file_id} -> {state.value}")
