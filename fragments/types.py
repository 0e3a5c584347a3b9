"""Fragments data type definitions."""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict


@dataclass
class FragmentMetadata:
    """
    The persisted metadata record of a fragment.

    The dictionary form uses the external field names (``ownerId`` rather
    than ``owner_id``) because it is both the API projection and the item
    layout of the DynamoDB table.
    """
    id: str
    owner_id: str
    type: str
    size: int
    created: str
    updated: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "type": self.type,
            "size": self.size,
            "created": self.created,
            "updated": self.updated,
        }

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "FragmentMetadata":
        size = item.get("size", 0)
        # DynamoDB returns numbers as Decimal
        if isinstance(size, Decimal):
            size = int(size)
        return cls(
            id=item["id"],
            owner_id=item["ownerId"],
            type=item["type"],
            size=size,
            created=item["created"],
            updated=item["updated"],
        )

    def copy(self) -> "FragmentMetadata":
        return replace(self)
