"""The Fragment domain entity."""

import math
from numbers import Real
from typing import Any, Dict, List, Optional, Union

from common.logging_config import get_logger
from fragments import conversion
from fragments.conversion import ConversionResult
from fragments.exceptions import (
    ConversionUnsupportedError,
    FragmentNotFoundError,
    FragmentValidationError,
    StorageFailureError,
    TypeMismatchError,
    UnsupportedContentTypeError,
)
from fragments.formats import SUPPORTED_TYPES, formats_for, mime_for_extension
from fragments.storage.interfaces import StorageBackends
from fragments.types import FragmentMetadata
from fragments.utils import base_mime, generate_uuid, get_current_timestamp

logger = get_logger(__name__)


class Fragment:
    """
    A typed blob of content owned by one user.

    A Fragment holds the validated metadata of one (owner_id, id) pair and
    reaches its bytes through the injected storage backends. Instances live
    for a single request; every load re-reads the stores.
    """

    def __init__(
        self,
        backends: StorageBackends,
        *,
        owner_id: str,
        type: str,
        id: Optional[str] = None,
        size: Union[int, float] = 0,
        created: Optional[str] = None,
        updated: Optional[str] = None,
    ):
        if not owner_id:
            raise FragmentValidationError("owner_id is required")
        if not type:
            raise UnsupportedContentTypeError("type is required")
        if not Fragment.is_supported_type(type):
            raise UnsupportedContentTypeError(f"unsupported type: {type}")

        if isinstance(size, bool) or not isinstance(size, Real) or not math.isfinite(size):
            raise FragmentValidationError("size must be a number")
        if size < 0:
            raise FragmentValidationError("size must be >= 0")
        if size != int(size):
            raise FragmentValidationError("size must be a whole number of bytes")

        self._backends = backends

        self.id = id or generate_uuid()
        self.owner_id = owner_id
        # The full header is kept, parameters (e.g. charset) included
        self.type = type
        # Stores accept integers only (DynamoDB rejects floats)
        self.size = int(size)

        now = get_current_timestamp()
        self.created = created or now
        self.updated = updated or now

    @classmethod
    def from_metadata(cls, backends: StorageBackends, record: FragmentMetadata) -> "Fragment":
        return cls(
            backends,
            id=record.id,
            owner_id=record.owner_id,
            type=record.type,
            size=record.size,
            created=record.created,
            updated=record.updated,
        )

    @classmethod
    async def by_user(
        cls,
        backends: StorageBackends,
        owner_id: str,
        expand: bool = False,
    ) -> Union[List[str], List["Fragment"]]:
        """
        Get all fragments of an owner.

        Args:
            backends: Storage backends to read from
            owner_id: Owner whose fragments are listed
            expand: Return hydrated Fragments instead of ids

        Returns:
            List of ids, or of Fragments when expand is set. Empty for an
            unknown owner.
        """
        results = await backends.metadata.query(owner_id, expand)
        if not expand:
            return list(results or [])
        return [cls.from_metadata(backends, record) for record in results or []]

    @classmethod
    async def by_id(cls, backends: StorageBackends, owner_id: str, fragment_id: str) -> "Fragment":
        """
        Load one fragment's metadata.

        Raises:
            FragmentNotFoundError: If no record exists for (owner_id, fragment_id)
        """
        record = await backends.metadata.get(owner_id, fragment_id)
        if record is None:
            raise FragmentNotFoundError(owner_id, fragment_id)
        return cls.from_metadata(backends, record)

    @staticmethod
    async def delete(backends: StorageBackends, owner_id: str, fragment_id: str) -> None:
        """
        Delete a fragment's metadata, then its data.

        Both steps are attempted in order and any failure propagates; a
        metadata record deleted before a failed blob delete is not restored.
        """
        await backends.metadata.delete(owner_id, fragment_id)
        await backends.blobs.delete(owner_id, fragment_id)
        logger.debug(f"Fragment deleted [owner_id={owner_id}] [id={fragment_id}]")

    async def save(self) -> None:
        """Persist the metadata, refreshing the updated timestamp."""
        self.updated = get_current_timestamp()
        await self._backends.metadata.put(self.to_metadata())

    async def get_data(self) -> bytes:
        """
        Read the fragment's bytes.

        Raises:
            StorageFailureError: If the blob store cannot supply the bytes,
                including when the blob is missing behind an existing record
        """
        data = await self._backends.blobs.get(self.owner_id, self.id)
        if data is None:
            logger.error(f"Fragment data missing for existing metadata [owner_id={self.owner_id}] [id={self.id}]")
            raise StorageFailureError("unable to read fragment data")
        return data

    async def set_data(self, data: bytes) -> None:
        """
        Replace the fragment's bytes and persist the matching metadata.

        The blob is written first. If the metadata write then fails, the
        two stores disagree until the next successful write.

        Raises:
            FragmentValidationError: If data is not a bytes-like object
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise FragmentValidationError("data must be bytes")
        data = bytes(data)

        await self._backends.blobs.put(self.owner_id, self.id, data)
        self.size = len(data)
        await self.save()

    async def replace_data(self, data: bytes, content_type: str) -> None:
        """
        Replace the bytes of an existing fragment with data of the same base type.

        Raises:
            UnsupportedContentTypeError: If content_type cannot be parsed
            TypeMismatchError: If content_type's base mime differs from the fragment's
        """
        try:
            new_mime = base_mime(content_type)
        except ValueError as e:
            raise UnsupportedContentTypeError(f"invalid content type: {content_type!r}") from e

        if new_mime != self.mime_type:
            raise TypeMismatchError(
                f"Content-Type {new_mime} does not match existing fragment type {self.mime_type}"
            )
        await self.set_data(data)

    @property
    def mime_type(self) -> str:
        """The type without parameters, e.g. 'text/plain' for 'text/plain; charset=utf-8'."""
        return base_mime(self.type)

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")

    @property
    def formats(self) -> List[str]:
        """Base mime types this fragment can be converted to, its own included."""
        return list(formats_for(self.mime_type))

    def can_convert_to(self, extension: str) -> bool:
        target = mime_for_extension(extension)
        if target is None:
            return False
        return target in self.formats

    async def convert_data(self, extension: str) -> ConversionResult:
        """
        Convert the fragment's bytes to the format named by an extension.

        Args:
            extension: Target extension including the dot (e.g., '.html')

        Returns:
            ConversionResult; when nothing was transformed the content type
            is the fragment's full declared type

        Raises:
            ConversionUnsupportedError: If the extension is unknown or not reachable
            ConversionError: If the stored payload cannot be converted
            StorageFailureError: If the data cannot be read
        """
        if not self.can_convert_to(extension):
            raise ConversionUnsupportedError(self.type, extension)

        data = await self.get_data()
        result = conversion.convert(data, self.mime_type, extension)

        if result.content_type == self.mime_type and result.data is data:
            return ConversionResult(data=result.data, content_type=self.type)
        return result

    @staticmethod
    def is_supported_type(value: Any) -> bool:
        """
        Check whether a content type, parameters allowed, is supported.

        Never raises; anything that does not parse is unsupported.
        """
        if not value:
            return False
        try:
            return base_mime(value) in SUPPORTED_TYPES
        except (ValueError, TypeError):
            return False

    def to_metadata(self) -> FragmentMetadata:
        return FragmentMetadata(
            id=self.id,
            owner_id=self.owner_id,
            type=self.type,
            size=self.size,
            created=self.created,
            updated=self.updated,
        )

    def to_dict(self) -> Dict[str, Any]:
        """The external projection: id, ownerId, type, size, created, updated."""
        return self.to_metadata().to_dict()

    def __repr__(self) -> str:
        return f"Fragment(id={self.id!r}, owner_id={self.owner_id!r}, type={self.type!r}, size={self.size})"
