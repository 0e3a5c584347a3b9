"""In-process metadata and blob stores for development and testing."""

import threading
from typing import Dict, List, Optional, Tuple, Union

from common.logging_config import get_logger
from fragments.storage.interfaces import blob_key
from fragments.types import FragmentMetadata

logger = get_logger(__name__)


class InMemoryMetadataStore:
    """
    Dict-based metadata store.

    Records are copied on the way in and on the way out so that a Fragment
    mutated in one request never changes what another request reads.
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], FragmentMetadata] = {}
        self._lock = threading.Lock()

    async def put(self, record: FragmentMetadata) -> None:
        with self._lock:
            self._records[(record.owner_id, record.id)] = record.copy()
        logger.debug(f"Stored metadata [owner_id={record.owner_id}] [id={record.id}]")

    async def get(self, owner_id: str, fragment_id: str) -> Optional[FragmentMetadata]:
        with self._lock:
            record = self._records.get((owner_id, fragment_id))
        return record.copy() if record is not None else None

    async def query(
        self,
        owner_id: str,
        expand: bool = False,
    ) -> Union[List[str], List[FragmentMetadata]]:
        with self._lock:
            records = [
                record for (record_owner, _), record in self._records.items()
                if record_owner == owner_id
            ]
        if not expand:
            return [record.id for record in records]
        return [record.copy() for record in records]

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        with self._lock:
            self._records.pop((owner_id, fragment_id), None)
        logger.debug(f"Deleted metadata [owner_id={owner_id}] [id={fragment_id}]")

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryBlobStore:
    """
    Dict-based blob store keyed by "{owner_id}/{id}".
    """

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    async def put(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        with self._lock:
            self._blobs[blob_key(owner_id, fragment_id)] = bytes(data)
        logger.debug(f"Stored {len(data)} bytes [owner_id={owner_id}] [id={fragment_id}]")

    async def get(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(blob_key(owner_id, fragment_id))

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        with self._lock:
            self._blobs.pop(blob_key(owner_id, fragment_id), None)
        logger.debug(f"Deleted data [owner_id={owner_id}] [id={fragment_id}]")

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)
