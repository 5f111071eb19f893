"""
Object storage gateway.

The gateway is the only thing callers talk to for uploads, fetches and
deletes. It never raises: put and delete return result objects with an
error message, get returns None, list returns an empty list.

The bucket and the public base URL are passed in rather than looked up,
so either can be missing (None) and the gateway reports that as a
configuration error without touching storage.
"""

import logging
from typing import Optional, Protocol

from .keys import DEFAULT_FOLDER, build_metadata, generate_object_key, public_url
from .models import (
    DeleteResult,
    ObjectMetadata,
    ObjectSummary,
    StoredObject,
    UploadFile,
    UploadResult,
)

logger = logging.getLogger(__name__)

BUCKET_NOT_BOUND = "Server configuration error: R2 bucket is not bound."
PUBLIC_URL_NOT_SET = "Server configuration error: R2 public URL is not set."
CONFIGURATION_ERRORS = frozenset({BUCKET_NOT_BOUND, PUBLIC_URL_NOT_SET})

UPLOAD_FAILED = "Upload failed"
DELETE_FAILED = "Delete from R2 failed"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class Bucket(Protocol):
    """
    A single object-storage bucket.

    get returns None for a missing key. delete of a missing key is not
    an error. Anything else that goes wrong raises.
    """

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        ...

    async def get(self, key: str) -> Optional[StoredObject]:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def list(self, prefix: str = "", limit: int = 1000) -> list[ObjectSummary]:
        ...


def is_configuration_error(error: Optional[str]) -> bool:
    return error in CONFIGURATION_ERRORS


def _error_message(exc: Exception, fallback: str) -> str:
    return str(exc) or fallback


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class ObjectStorageGateway:
    """
    Upload, fetch, delete and list objects in one bucket.

    Stateless beyond its two dependencies, so one instance can serve
    concurrent requests.
    """

    def __init__(self, bucket: Optional[Bucket], base_url: Optional[str]) -> None:
        self._bucket = bucket
        self._base_url = base_url

    @property
    def bucket_bound(self) -> bool:
        return self._bucket is not None

    @property
    def public_url_configured(self) -> bool:
        return bool(self._base_url)

    async def put(self, file: UploadFile, folder: str = DEFAULT_FOLDER) -> UploadResult:
        """
        Upload a file under a freshly generated key.

        Returns the public URL and key on success. Configuration problems
        are reported before any I/O happens.
        """
        if self._bucket is None:
            logger.error("Upload rejected: bucket is not bound")
            return UploadResult.failed(BUCKET_NOT_BOUND)

        if not self._base_url:
            logger.error("Upload rejected: public URL is not configured")
            return UploadResult.failed(PUBLIC_URL_NOT_SET)

        key = generate_object_key(file.filename, folder)

        try:
            data = await file.read()
            metadata = build_metadata(file.filename, file.content_type, len(data))
            await self._bucket.put(key, data, metadata)
        except Exception as e:
            logger.error(
                "Upload failed",
                extra={"key": key, "error": str(e)},
            )
            return UploadResult.failed(_error_message(e, UPLOAD_FAILED))

        logger.info(
            "Uploaded object",
            extra={"key": key, "size_bytes": len(data)},
        )

        return UploadResult(
            success=True,
            url=public_url(self._base_url, key),
            key=key,
        )

    async def get(self, key: str) -> Optional[StoredObject]:
        """
        Fetch an object by exact key.

        None covers both "not found" and "storage error"; errors are
        logged, not raised.
        """
        if self._bucket is None:
            logger.error("Get failed: bucket is not bound", extra={"key": key})
            return None

        try:
            return await self._bucket.get(key)
        except Exception as e:
            logger.error(
                "Error getting object",
                extra={"key": key, "error": str(e)},
            )
            return None

    async def delete(self, key: str) -> DeleteResult:
        """Delete an object. Deleting a missing key succeeds."""
        if self._bucket is None:
            logger.error("Delete rejected: bucket is not bound", extra={"key": key})
            return DeleteResult(success=False, error=BUCKET_NOT_BOUND)

        try:
            await self._bucket.delete(key)
        except Exception as e:
            logger.error(
                "Delete failed",
                extra={"key": key, "error": str(e)},
            )
            return DeleteResult(success=False, error=_error_message(e, DELETE_FAILED))

        logger.info("Deleted object", extra={"key": key})
        return DeleteResult(success=True)

    async def list(self, prefix: str = "", limit: int = 1000) -> list[ObjectSummary]:
        """List objects under a prefix, sorted by key. Errors yield []."""
        if self._bucket is None:
            logger.error("List failed: bucket is not bound", extra={"prefix": prefix})
            return []

        try:
            objects = await self._bucket.list(prefix=prefix, limit=limit)
        except Exception as e:
            logger.error(
                "Error listing objects",
                extra={"prefix": prefix, "error": str(e)},
            )
            return []

        return sorted(objects, key=lambda obj: obj.key)[:limit]
