"""Helpers for storing avatars, post images and story images in backend buckets."""
from __future__ import annotations

import base64
import binascii
import logging
import secrets
import string
import time
from typing import Final

from ..clients.backend import BackendClient, BackendError
from ..schemas import ApiResponse, FileUploadResult, ImageValidation, StorageObject, UploadedFile
from .errors import service_call

logger = logging.getLogger(__name__)

STORAGE_BUCKETS: Final[dict[str, str]] = {
    "AVATARS": "avatars",
    "POSTS": "posts",
    "STORIES": "stories",
}

DEFAULT_CACHE_CONTROL: Final[str] = "3600"
MAX_IMAGE_BYTES: Final[int] = 10 * 1024 * 1024
ALLOWED_IMAGE_TYPES: Final[frozenset[str]] = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
LIST_LIMIT: Final[int] = 100

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_RANDOM_LENGTH = 13


class StorageError(RuntimeError):
    """Raised when a storage request cannot be prepared."""


def _bucket_name(bucket: str) -> str:
    try:
        return STORAGE_BUCKETS[bucket]
    except KeyError as exc:
        raise StorageError(f"Unknown storage bucket: {bucket}") from exc


def _decode_payload(file: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(file, str):
        # Base64 payloads may arrive as data URLs
        _, _, encoded = file.rpartition(",")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise StorageError("File payload is not valid base64") from exc
    return bytes(file)


def upload_file(
    client: BackendClient,
    *,
    bucket: str,
    path: str,
    file: bytes | bytearray | memoryview | str,
    content_type: str | None = None,
    cache_control: str = DEFAULT_CACHE_CONTROL,
    upsert: bool = False,
) -> FileUploadResult:
    """Upload ``file`` (raw bytes or a base64 string) and return its public URL."""

    try:
        bucket_name = _bucket_name(bucket)
        payload = _decode_payload(file)
        response = client.upload_object(
            bucket_name,
            path,
            payload,
            content_type=content_type or "application/octet-stream",
            cache_control=cache_control,
            upsert=upsert,
        )
    except (BackendError, StorageError) as exc:
        logger.error("Storage upload error for %s/%s: %s", bucket, path, exc)
        return FileUploadResult(data=None, error=str(exc))

    full_path = response.get("Key") or f"{bucket_name}/{path}"
    return FileUploadResult(
        data=UploadedFile(
            path=path,
            full_path=full_path,
            public_url=client.public_url(bucket_name, path),
        ),
        error=None,
    )


def delete_file(client: BackendClient, bucket: str, path: str) -> ApiResponse:
    def _remove() -> None:
        client.remove_objects(_bucket_name(bucket), [path])

    return service_call(_remove, "storage_service.delete_file")


def get_public_url(client: BackendClient, bucket: str, path: str) -> str:
    return client.public_url(_bucket_name(bucket), path)


def generate_file_path(user_id: str, file_name: str, folder: str | None = None) -> str:
    """Build ``[folder/]user_id/<epoch ms>_<random>.<ext>`` so uploads never collide."""

    timestamp = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(_RANDOM_LENGTH))
    extension = file_name.rsplit(".", 1)[-1]
    base_name = f"{timestamp}_{random_part}"
    if folder:
        return f"{folder}/{user_id}/{base_name}.{extension}"
    return f"{user_id}/{base_name}.{extension}"


def upload_avatar(client: BackendClient, user_id: str, file: bytes | str) -> FileUploadResult:
    path = generate_file_path(user_id, "avatar.jpg", "avatars")
    return upload_file(client, bucket="AVATARS", path=path, file=file, content_type="image/jpeg", upsert=True)


def upload_post_image(client: BackendClient, user_id: str, file: bytes | str, file_name: str) -> FileUploadResult:
    path = generate_file_path(user_id, file_name, "posts")
    return upload_file(client, bucket="POSTS", path=path, file=file, content_type="image/jpeg")


def upload_story_image(client: BackendClient, user_id: str, file: bytes | str, file_name: str) -> FileUploadResult:
    path = generate_file_path(user_id, file_name, "stories")
    return upload_file(client, bucket="STORIES", path=path, file=file, content_type="image/jpeg")


def list_files(client: BackendClient, bucket: str, folder: str | None = None) -> ApiResponse:
    def _list() -> list[StorageObject]:
        rows = client.list_objects(_bucket_name(bucket), folder or "", limit=LIST_LIMIT, offset=0)
        return [StorageObject.model_validate(row) for row in rows]

    return service_call(_list, "storage_service.list_files")


def get_file_metadata(client: BackendClient, bucket: str, path: str) -> ApiResponse:
    return service_call(
        lambda: client.object_info(_bucket_name(bucket), path),
        "storage_service.get_file_metadata",
    )


def validate_image_file(size: int, content_type: str | None) -> ImageValidation:
    if size > MAX_IMAGE_BYTES:
        return ImageValidation(valid=False, error="File size must be less than 10MB")
    if (content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        return ImageValidation(valid=False, error="File must be a JPEG, PNG, or WebP image")
    return ImageValidation(valid=True)


__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "MAX_IMAGE_BYTES",
    "STORAGE_BUCKETS",
    "StorageError",
    "delete_file",
    "generate_file_path",
    "get_file_metadata",
    "get_public_url",
    "list_files",
    "upload_avatar",
    "upload_file",
    "upload_post_image",
    "upload_story_image",
    "validate_image_file",
]
