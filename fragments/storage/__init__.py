"""Storage layer for fragment metadata and data."""

from fragments.storage.interfaces import BlobStore, MetadataStore, StorageBackends
from fragments.storage.memory import InMemoryBlobStore, InMemoryMetadataStore
from fragments.storage.selector import create_backends

__all__ = [
    "BlobStore",
    "MetadataStore",
    "StorageBackends",
    "InMemoryBlobStore",
    "InMemoryMetadataStore",
    "create_backends",
]
