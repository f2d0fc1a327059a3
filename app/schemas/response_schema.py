"""Unified API response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Error envelope: failure flag, human readable message and error code."""

    success: bool = False
    error: str
    code: str


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping the operation result."""

    success: bool = True
    data: T | None = None


def success_response(data: T) -> dict:
    """Build a success envelope for returning from endpoints."""
    return {"success": True, "data": data}
