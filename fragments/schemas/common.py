"""Common schemas used across multiple endpoints."""

from typing import Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    status: Literal["error"] = "error"
    detail: str
    code: str


class HealthResponse(BaseModel):
    """Response model for the unauthenticated health check."""
    status: Literal["ok"] = "ok"
    version: str
    hostname: str
