"""Response envelopes shared by every service façade."""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from ..constants import ErrorType

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool = False


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by service calls: either ``data`` or an ``error`` message."""

    data: T | None = None
    error: str | None = None
    success: bool = False
    error_type: ErrorType | None = None


class PaginatedResponse(ApiResponse[list[T]], Generic[T]):
    """Envelope for list results with page metadata."""

    data: list[T] | None = Field(default_factory=list)
    pagination: Pagination


def build_pagination(*, limit: int, offset: int, total: int) -> Pagination:
    """Derive page metadata from ``limit``/``offset`` and the backend's exact count."""

    page = offset // limit + 1 if limit > 0 else 1
    return Pagination(page=page, limit=limit, total=total, has_more=offset + limit < total)


__all__ = ["ApiResponse", "PaginatedResponse", "Pagination", "build_pagination"]
