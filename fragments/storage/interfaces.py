"""Storage protocols for fragment metadata and fragment data."""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Union, runtime_checkable

from fragments.types import FragmentMetadata


def blob_key(owner_id: str, fragment_id: str) -> str:
    """
    Build the blob key of a fragment.

    Args:
        owner_id: Owner of the fragment
        fragment_id: Fragment id, unique within the owner

    Returns:
        Path-like key "{owner_id}/{fragment_id}"
    """
    return f"{owner_id}/{fragment_id}"


@runtime_checkable
class MetadataStore(Protocol):
    """
    Key-value store of FragmentMetadata keyed by (owner_id, id).
    """

    async def put(self, record: FragmentMetadata) -> None:
        """Create or overwrite a record."""
        ...

    async def get(self, owner_id: str, fragment_id: str) -> Optional[FragmentMetadata]:
        """Return the record, or None when absent."""
        ...

    async def query(
        self,
        owner_id: str,
        expand: bool = False,
    ) -> Union[List[str], List[FragmentMetadata]]:
        """List ids (or full records when expand is set) of one owner, in no particular order."""
        ...

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        """Remove a record."""
        ...


@runtime_checkable
class BlobStore(Protocol):
    """
    Key-value store of raw fragment bytes keyed by (owner_id, id).
    """

    async def put(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        """Create or overwrite the bytes of a fragment."""
        ...

    async def get(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        """Return the bytes, or None when the backend can tell they are absent."""
        ...

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        """Remove the bytes of a fragment."""
        ...


@dataclass(frozen=True)
class StorageBackends:
    """
    The metadata and blob stores bound for the lifetime of the process.
    """
    metadata: MetadataStore
    blobs: BlobStore
    kind: str
