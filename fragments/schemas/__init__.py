"""Pydantic schemas for API requests and responses."""

from fragments.schemas.fragments import (
    FragmentResponse,
    FragmentEnvelope,
    ListFragmentsResponse,
    OkResponse
)
from fragments.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "FragmentResponse",
    "FragmentEnvelope",
    "ListFragmentsResponse",
    "OkResponse",
    "ErrorResponse",
    "HealthResponse"
]
