"""File service: the operations exposed over HTTP."""

from typing import BinaryIO, List, Optional, Union

from common.constants import MAX_PART_SIZE_BYTES, MAX_PARTS_PER_FILE, UPLOAD_CONCURRENCY
from common.logging_config import get_logger
from common.types import FileRecord, MergedFile, PartRecord, ResolvedFile
from coordinator.blob_sink_client import BlobSinkClient
from coordinator.catalog import CatalogStore
from coordinator.orphan_log import OrphanLog
from coordinator.services.retrieval_service import RetrievalCoordinator
from coordinator.services.upload_service import UploadCoordinator, UploadResult

logger = get_logger(__name__)


class FileService:
    def __init__(
        self,
        sink: BlobSinkClient,
        catalog: CatalogStore,
        orphan_log: Optional[OrphanLog] = None,
        max_part_size: int = MAX_PART_SIZE_BYTES,
        max_parts: int = MAX_PARTS_PER_FILE,
        concurrency: int = UPLOAD_CONCURRENCY,
    ):
        self.sink = sink
        self.catalog = catalog
        self.orphan_log = orphan_log
        self.uploads = UploadCoordinator(
            sink,
            catalog,
            max_part_size=max_part_size,
            max_parts=max_parts,
            concurrency=concurrency,
            orphan_log=orphan_log,
        )
        self.retrieval = RetrievalCoordinator(sink, catalog, concurrency=concurrency)

    async def upload_file(
        self,
        stream: Union[BinaryIO, bytes],
        filename: str,
        mime_type: Optional[str] = None,
    ) -> UploadResult:
        return await self.uploads.upload(stream, filename, mime_type)

    def resolve_file(self, file_id: str) -> ResolvedFile:
        return self.retrieval.resolve(file_id)

    async def merge_file(self, file_id: str) -> MergedFile:
        return await self.retrieval.merge(file_id)

    def get_file(self, file_id: str) -> FileRecord:
        return self.catalog.get_file(file_id)

    def list_files(self, limit: int = 100, offset: int = 0) -> List[FileRecord]:
        return self.catalog.list_files(limit=limit, offset=offset)

    def delete_file(self, file_id: str) -> List[PartRecord]:
        """
        Delete a file and its parts from the catalog.

        The parts' sink objects are queued in the orphan log; the cleanup
        task removes them from the sink later.
        """
        parts = self.catalog.delete_file(file_id)
        if self.orphan_log is not None:
            self.orphan_log.record_parts(file_id, parts, "file deleted")
        return parts

    async def close(self) -> None:
        await self.sink.close()
