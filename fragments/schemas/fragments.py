"""Pydantic schemas for fragment endpoints."""

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class FragmentResponse(BaseModel):
    """External projection of a fragment's metadata."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="ownerId")
    type: str
    size: int
    created: str
    updated: str


class FragmentEnvelope(BaseModel):
    """Response model for a single fragment."""
    status: Literal["ok"] = "ok"
    fragment: FragmentResponse


class ListFragmentsResponse(BaseModel):
    """Response model for fragment listing (ids, or metadata with expand=1)."""
    status: Literal["ok"] = "ok"
    fragments: Union[List[FragmentResponse], List[str]]


class OkResponse(BaseModel):
    """Response model for operations that return no data."""
    status: Literal["ok"] = "ok"
