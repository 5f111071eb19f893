"""
File storage API endpoints.

Thin HTTP layer over ObjectStorageGateway:
1. POST   /           upload a file, returns its public URL and key
2. GET    /           list objects under a prefix
3. GET    /{key}      stream back an object with its stored metadata
4. DELETE /{key}      delete an object (idempotent)

The gateway never raises, so failures are mapped to status codes here:
configuration problems are 503, storage failures are 502.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, File, Form, HTTPException, Query, Response, UploadFile, status
from pydantic import BaseModel, Field

from ...core.storage.gateway import is_configuration_error
from ..dependencies import AuthenticatedUser, GatewayDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    """Response after a successful upload."""
    url: str = Field(description="Public URL the object is served from")
    key: str = Field(description="Object key, used for later get/delete")


class DeleteResponse(BaseModel):
    """Response after a delete."""
    key: str
    deleted: bool = True


class ObjectSummaryResponse(BaseModel):
    key: str
    size: int
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None


class ObjectListResponse(BaseModel):
    """Objects under a prefix, sorted by key."""
    prefix: str
    count: int
    objects: list[ObjectSummaryResponse]


def _failure_status(error: Optional[str]) -> int:
    if is_configuration_error(error):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_502_BAD_GATEWAY


async def upload_size(file: UploadFile) -> int:
    """
    Size of an upload in bytes.

    Uses the size the multipart parser recorded; when it's missing the
    body is measured and the file rewound for the gateway to read.
    """
    if file.size is not None:
        return file.size
    data = await file.read()
    await file.seek(0)
    return len(data)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
)
async def upload_file(
    _: AuthenticatedUser,
    gateway: GatewayDep,
    settings: SettingsDep,
    file: Annotated[UploadFile, File(description="File to upload")],
    folder: Annotated[Optional[str], Form(description="Key prefix, defaults to the configured folder")] = None,
) -> UploadResponse:
    """
    Upload a file under a generated key.

    The whole file is read into memory, so uploads are capped at
    MAX_UPLOAD_SIZE_MB.
    """
    if await upload_size(file) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum upload size of {settings.max_upload_size_mb} MB",
        )

    folder = (folder or "").strip("/") or settings.default_folder

    result = await gateway.put(file, folder=folder)

    if not result.success:
        raise HTTPException(
            status_code=_failure_status(result.error),
            detail=result.error,
        )

    logger.info(
        "File uploaded",
        extra={"key": result.key, "filename": file.filename}
    )

    return UploadResponse(url=result.url, key=result.key)


@router.get(
    "",
    response_model=ObjectListResponse,
    summary="List objects",
)
async def list_files(
    _: AuthenticatedUser,
    gateway: GatewayDep,
    prefix: Annotated[str, Query(description="Only keys starting with this prefix")] = "",
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> ObjectListResponse:
    objects = await gateway.list(prefix=prefix, limit=limit)

    return ObjectListResponse(
        prefix=prefix,
        count=len(objects),
        objects=[
            ObjectSummaryResponse(
                key=obj.key,
                size=obj.size,
                etag=obj.etag,
                last_modified=obj.last_modified,
            )
            for obj in objects
        ],
    )


@router.get(
    "/{key:path}",
    summary="Download an object",
    responses={404: {"description": "Object not found"}},
)
async def get_file(
    key: str,
    _: AuthenticatedUser,
    gateway: GatewayDep,
) -> Response:
    """
    Return the object body with its stored content type and cache policy.

    Storage errors also come back as 404; the gateway doesn't
    distinguish them from a missing key.
    """
    obj = await gateway.get(key)

    if obj is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Object not found: {key}",
        )

    headers = {"Cache-Control": obj.metadata.cache_control}
    if obj.etag:
        headers["ETag"] = f'"{obj.etag}"'
    if obj.metadata.original_name:
        # Header values must be latin-1; filenames may not be.
        headers["X-Original-Name"] = quote(obj.metadata.original_name)
    if obj.metadata.uploaded_at:
        headers["X-Uploaded-At"] = obj.metadata.uploaded_at

    return Response(
        content=obj.body,
        media_type=obj.metadata.content_type,
        headers=headers,
    )


@router.delete(
    "/{key:path}",
    response_model=DeleteResponse,
    summary="Delete an object",
)
async def delete_file(
    key: str,
    _: AuthenticatedUser,
    gateway: GatewayDep,
) -> DeleteResponse:
    """Delete an object. Deleting a key that doesn't exist still succeeds."""
    result = await gateway.delete(key)

    if not result.success:
        raise HTTPException(
            status_code=_failure_status(result.error),
            detail=result.error,
        )

    return DeleteResponse(key=key)
