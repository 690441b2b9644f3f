"""Image upload routes backed by the storage buckets."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..schemas import FileUploadResult
from ..services import storage_service
from ..services.auth_store import AuthStore
from .deps import get_user_client, require_authenticated, require_profile, respond

router = APIRouter(prefix="/uploads", tags=["uploads"])


def _bucket_key(bucket: str) -> str:
    key = bucket.upper()
    if key not in storage_service.STORAGE_BUCKETS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown storage bucket: {bucket}")
    return key


async def _read_image(file: UploadFile) -> bytes:
    filename = (file.filename or "").strip()
    if not filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file must include a filename.")

    content = await file.read()
    check = storage_service.validate_image_file(len(content), file.content_type)
    if not check.valid:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=check.error)
    return content


def _upload_response(result: FileUploadResult) -> JSONResponse:
    if result.error is not None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=result.model_dump(mode="json"))


@router.post("/avatar")
async def upload_avatar_endpoint(
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    """Replace the signed-in user's avatar and return its public URL."""

    content = await _read_image(file)
    result = await run_in_threadpool(storage_service.upload_avatar, client, store.current_user_id, content)
    return _upload_response(result)


@router.post("/posts")
async def upload_post_image_endpoint(
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    content = await _read_image(file)
    result = await run_in_threadpool(
        storage_service.upload_post_image,
        client,
        store.current_user_id,
        content,
        file.filename or "",
    )
    return _upload_response(result)


@router.post("/stories")
async def upload_story_image_endpoint(
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    content = await _read_image(file)
    result = await run_in_threadpool(
        storage_service.upload_story_image,
        client,
        store.current_user_id,
        content,
        file.filename or "",
    )
    return _upload_response(result)


@router.get("/{bucket}")
def list_files_endpoint(
    bucket: str,
    folder: str | None = Query(None),
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    return respond(storage_service.list_files(client, _bucket_key(bucket), folder))


@router.get("/{bucket}/info/{path:path}")
def file_info_endpoint(
    bucket: str,
    path: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    return respond(storage_service.get_file_metadata(client, _bucket_key(bucket), path))


@router.delete("/{bucket}/{path:path}")
def delete_file_endpoint(
    bucket: str,
    path: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    return respond(storage_service.delete_file(client, _bucket_key(bucket), path))


__all__ = ["router"]
