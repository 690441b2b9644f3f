"""Schemas describing objects in backend storage buckets."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class UploadedFile(BaseModel):
    path: str
    full_path: str
    public_url: str


class FileUploadResult(BaseModel):
    data: UploadedFile | None = None
    error: str | None = None


class StorageObject(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    id: str | None = None
    updated_at: str | None = None
    created_at: str | None = None
    metadata: dict[str, Any] | None = None


class ImageValidation(BaseModel):
    valid: bool
    error: str | None = None


__all__ = ["FileUploadResult", "ImageValidation", "StorageObject", "UploadedFile"]
