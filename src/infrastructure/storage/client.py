"""
Object storage buckets for uploaded files.

Supports Cloudflare R2 (S3-compatible) with mock mode for local development.
Both implementations satisfy the Bucket protocol the gateway depends on.

Mock mode stores objects in memory, enabling API testing without
provisioning actual object storage.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote, unquote

from ...core.storage.models import (
    CACHE_CONTROL,
    DEFAULT_CONTENT_TYPE,
    ObjectMetadata,
    ObjectSummary,
    StoredObject,
)

logger = logging.getLogger(__name__)

# S3 lowercases user metadata keys; map them back to the stored names.
_CUSTOM_METADATA_KEYS = {
    "originalname": "originalName",
    "uploadedat": "uploadedAt",
    "size": "size",
}

# S3 user metadata must be ASCII; these values are percent-encoded on write.
_ENCODED_METADATA_KEYS = {"originalName"}

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}

_MAX_KEYS_PER_REQUEST = 1000


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for R2/S3-compatible storage.

    Using a dataclass instead of raw parameters means:
    - Configuration is explicit and documented
    - Simple to create test configurations
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    endpoint_url: str
    region: str = "auto"  # R2 uses 'auto' for region


def _is_not_found(error: Exception) -> bool:
    response = getattr(error, "response", None) or {}
    code = str(response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


def _encode_custom_metadata(custom: dict[str, str]) -> dict[str, str]:
    return {
        k: quote(v, safe="") if k in _ENCODED_METADATA_KEYS else v
        for k, v in custom.items()
    }


def _restore_custom_metadata(raw: dict[str, str]) -> dict[str, str]:
    restored = {}
    for k, v in raw.items():
        name = _CUSTOM_METADATA_KEYS.get(k.lower(), k)
        restored[name] = unquote(v) if name in _ENCODED_METADATA_KEYS else v
    return restored


class R2Bucket:
    """
    Cloudflare R2 bucket.

    Uses boto3 because R2 is S3-compatible, so the same class works
    against S3 or MinIO by pointing endpoint_url elsewhere.

    Methods are async to match the Bucket protocol even though boto3
    is synchronous.
    """

    def __init__(self, config: StorageConfig, s3_client: Any = None) -> None:
        """
        Initialize R2 bucket with boto3.

        boto3 is imported here (not at module level) because mock mode
        doesn't need it. Tests can pass a ready-made s3_client.
        """
        self._config = config

        if s3_client is None:
            try:
                import boto3
                from botocore.config import Config
            except ImportError:
                raise ImportError(
                    "boto3 is required for R2 storage. Install with: pip install boto3"
                )

            # R2 requires v4 signatures
            boto_config = Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
            )

            s3_client = boto3.client(
                's3',
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                region_name=config.region,
                config=boto_config,
            )

        self._s3_client = s3_client

        logger.info(
            "Initialized R2 bucket",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
            }
        )

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        """Write an object in a single put_object call."""
        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=metadata.content_type,
                CacheControl=metadata.cache_control,
                Metadata=_encode_custom_metadata(metadata.custom_metadata),
            )
        except Exception as e:
            logger.error(
                "Failed to put object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}")

        logger.debug(
            "Put object",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get(self, key: str) -> Optional[StoredObject]:
        """Fetch an object. Returns None when the key doesn't exist."""
        try:
            response = self._s3_client.get_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
            body = response['Body'].read()
        except Exception as e:
            if _is_not_found(e):
                return None
            logger.error(
                "Failed to get object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Download failed: {e}")

        metadata = ObjectMetadata(
            content_type=response.get('ContentType') or DEFAULT_CONTENT_TYPE,
            cache_control=response.get('CacheControl') or CACHE_CONTROL,
            custom_metadata=_restore_custom_metadata(response.get('Metadata') or {}),
        )

        etag = response.get('ETag')
        return StoredObject(
            key=key,
            body=body,
            metadata=metadata,
            etag=etag.strip('"') if etag else None,
            last_modified=response.get('LastModified'),
        )

    async def delete(self, key: str) -> None:
        """
        Delete an object.

        S3 and R2 both treat deleting a missing key as success, so there
        is no existence check.
        """
        try:
            self._s3_client.delete_object(
                Bucket=self._config.bucket_name,
                Key=key,
            )
        except Exception as e:
            logger.error(
                "Failed to delete object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Delete failed: {e}")

    async def list(self, prefix: str = "", limit: int = 1000) -> list[ObjectSummary]:
        """List up to `limit` objects under `prefix` (single request)."""
        try:
            response = self._s3_client.list_objects_v2(
                Bucket=self._config.bucket_name,
                Prefix=prefix,
                MaxKeys=min(limit, _MAX_KEYS_PER_REQUEST),
            )
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}")

        return [
            ObjectSummary(
                key=obj['Key'],
                size=obj.get('Size', 0),
                etag=obj['ETag'].strip('"') if obj.get('ETag') else None,
                last_modified=obj.get('LastModified'),
            )
            for obj in response.get('Contents', [])
        ]


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class _MockEntry:
    data: bytes
    metadata: ObjectMetadata
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MockBucket:
    """
    In-memory bucket for local development.

    Objects are stored in a dictionary keyed by object key. Call
    counters let tests check that no I/O happened.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self) -> None:
        self._objects: dict[str, _MockEntry] = {}
        self.put_calls = 0
        self.delete_calls = 0
        logger.info("Initialized mock bucket (in-memory)")

    def __contains__(self, key: str) -> bool:
        return key in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        self.put_calls += 1
        self._objects[key] = _MockEntry(data=bytes(data), metadata=metadata)

        logger.debug(
            "Stored object in mock bucket",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def get(self, key: str) -> Optional[StoredObject]:
        entry = self._objects.get(key)
        if entry is None:
            return None

        return StoredObject(
            key=key,
            body=entry.data,
            metadata=entry.metadata,
            last_modified=entry.last_modified,
        )

    async def delete(self, key: str) -> None:
        self.delete_calls += 1
        self._objects.pop(key, None)

    async def list(self, prefix: str = "", limit: int = 1000) -> list[ObjectSummary]:
        keys = sorted(k for k in self._objects if k.startswith(prefix))[:limit]
        return [
            ObjectSummary(
                key=k,
                size=len(self._objects[k].data),
                last_modified=self._objects[k].last_modified,
            )
            for k in keys
        ]


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_bucket(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
):
    """
    Create a bucket based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return an in-memory bucket

    Returns:
        R2Bucket or MockBucket
    """
    if mock_mode:
        return MockBucket()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return R2Bucket(config)
