"""Persistent list of sink objects that no catalog row references."""

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional, Union

from common.logging_config import get_logger
from common.types import PartRecord, StoredObject
from coordinator.utils import utc_now

logger = get_logger(__name__)


class OrphanLog:
    """
    JSON file of orphaned sink objects, consumed by OrphanedPartCleaner.

    Entries come from aborted uploads (parts stored before the failure) and
    from deleted files.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> List[Dict]:
        with self._lock:
            return self._read()

    def _read(self) -> List[Dict]:
        if not self.path.exists():
            return []
        with open(self.path, 'r') as f:
            return json.load(f)

    def _write(self, entries: List[Dict]) -> None:
        if not entries:
            if self.path.exists():
                self.path.unlink()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(entries, f, indent=2)

    def discard(self, entries: List[Dict]) -> None:
        """Remove handled entries, keeping anything recorded since they were loaded."""
        with self._lock:
            self._write([e for e in self._read() if e not in entries])

    def record_stored(self, file_id: str, stored: List[StoredObject], reason: str) -> None:
        self._append([
            self._entry(file_id, obj.object_id, obj.handle, obj.filename, reason)
            for obj in stored
        ])

    def record_parts(self, file_id: str, parts: List[PartRecord], reason: str) -> None:
        self._append([
            self._entry(file_id, part.sink_object_id, part.external_handle, part.stored_name, reason)
            for part in parts
        ])

    def _entry(
        self,
        file_id: str,
        object_id: Optional[str],
        handle: str,
        name: str,
        reason: str,
    ) -> Dict:
        return {
            "file_id": file_id,
            "object_id": object_id,
            "handle": handle,
            "name": name,
            "reason": reason,
            "recorded_at": utc_now().isoformat(),
        }

    def _append(self, entries: List[Dict]) -> None:
        if not entries:
            return
        try:
            with self._lock:
                existing = self._read()
                self._write(existing + entries)
        except (OSError, ValueError) as e:
            # The objects stay in the sink either way; losing the record only
            # means they will not be reclaimed automatically.
            logger.error(f"Failed to record {len(entries)} orphaned parts: {e}", exc_info=True)
            return
        logger.warning(f"Recorded {len(entries)} orphaned parts for file {entries[0]['file_id']}")
