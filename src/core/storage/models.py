"""
Domain models for object storage.

These models represent what the gateway hands back to callers. They have
no dependencies on boto3 or FastAPI; the infrastructure layer translates
provider responses into them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol


CACHE_CONTROL = "public, max-age=31536000"  # 1 year
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadFile(Protocol):
    """
    Anything that can be uploaded.

    FastAPI's UploadFile satisfies this, so route handlers pass it
    straight through. Scripts and tests use InMemoryFile.
    """

    filename: Optional[str]
    content_type: Optional[str]

    async def read(self) -> bytes:
        ...


@dataclass
class InMemoryFile:
    """A file whose content is already in memory."""
    filename: str
    data: bytes
    content_type: Optional[str] = None

    async def read(self) -> bytes:
        return self.data

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ObjectMetadata:
    """
    Metadata stored alongside an object.

    custom_metadata keys are part of the persisted format:
    originalName, uploadedAt (ISO-8601), size (decimal string).
    """
    content_type: str = DEFAULT_CONTENT_TYPE
    cache_control: str = CACHE_CONTROL
    custom_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def original_name(self) -> Optional[str]:
        return self.custom_metadata.get("originalName")

    @property
    def uploaded_at(self) -> Optional[str]:
        return self.custom_metadata.get("uploadedAt")


@dataclass
class StoredObject:
    """An object fetched from the bucket: content plus metadata."""
    key: str
    body: bytes
    metadata: ObjectMetadata = field(default_factory=ObjectMetadata)
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None

    @property
    def size(self) -> int:
        return len(self.body)


@dataclass(frozen=True)
class ObjectSummary:
    """A listing entry. No body, so listings stay cheap."""
    key: str
    size: int
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None


@dataclass
class UploadResult:
    """
    Outcome of an upload.

    On success url and key are set; on failure only error is.
    """
    success: bool
    url: Optional[str] = None
    key: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)


@dataclass
class DeleteResult:
    """Outcome of a delete."""
    success: bool
    error: Optional[str] = None
