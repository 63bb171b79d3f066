"""Retrieval coordinator (merge engine): resolve handles and reassemble files."""

import asyncio
from typing import List

from common.constants import UPLOAD_CONCURRENCY
from common.logging_config import get_logger
from common.types import MergedFile, PartRecord, ResolvedFile
from coordinator.blob_sink_client import BlobSinkClient
from coordinator.catalog import CatalogStore
from coordinator.exceptions import PartialContentMissingError, UpstreamFailureError

logger = get_logger(__name__)


class RetrievalCoordinator:
    def __init__(
        self,
        sink: BlobSinkClient,
        catalog: CatalogStore,
        concurrency: int = UPLOAD_CONCURRENCY,
    ):
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")

        self.sink = sink
        self.catalog = catalog
        self.concurrency = concurrency

    def resolve(self, file_id: str) -> ResolvedFile:
        """
        Look up a file and the handles of its parts, in part order.

        Raises:
            NotFoundError: If the file is unknown or has no parts
        """
        file = self.catalog.get_file(file_id)
        parts = self.catalog.list_parts(file_id)

        return ResolvedFile(
            file_id=file.file_id,
            filename=file.original_filename,
            mime_type=file.mime_type,
            size=file.original_size,
            handles=[part.external_handle for part in parts],
        )

    async def merge(self, file_id: str) -> MergedFile:
        """
        Fetch every part concurrently and reassemble the original bytes.

        Fetch completion order does not matter: each part is copied to the
        offset given by its part_index.

        Raises:
            NotFoundError: If the file is unknown or has no parts
            PartialContentMissingError: If any part could not be fetched
            UpstreamFailureError: If a fetched part has the wrong length
        """
        file = self.catalog.get_file(file_id)
        parts = self.catalog.list_parts(file_id)

        logger.info(f"Merging file {file_id} ({len(parts)} parts, {file.original_size} bytes)")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch_part(part: PartRecord) -> bytes:
            async with semaphore:
                return await self.sink.fetch(part.external_handle)

        results = await asyncio.gather(*(fetch_part(part) for part in parts), return_exceptions=True)

        missing: List[int] = []
        for part, result in zip(parts, results):
            if isinstance(result, BaseException):
                logger.error(f"Part {part.part_index} of file {file_id} could not be fetched: {result}")
                missing.append(part.part_index)

        if missing:
            raise PartialContentMissingError(
                f"Failed to merge file {file_id}: parts {missing} of {len(parts)} could not be fetched",
                missing_indices=missing,
            )

        for part, data in zip(parts, results):
            if len(data) != part.part_size:
                raise UpstreamFailureError(
                    f"Part {part.part_index} of file {file_id} returned {len(data)} bytes, "
                    f"expected {part.part_size}"
                )

        total_length = sum(len(data) for data in results)
        merged = bytearray(total_length)

        offset = 0
        for part, data in sorted(zip(parts, results), key=lambda pair: pair[0].part_index):
            merged[offset:offset + len(data)] = data
            offset += len(data)

        logger.info(f"Merged file {file_id}: {total_length} bytes")

        return MergedFile(
            file_id=file.file_id,
            filename=file.original_filename,
            mime_type=file.mime_type,
            content=bytes(merged),
        )
