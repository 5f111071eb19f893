"""
Object storage domain logic.

Contains the gateway, its result models, and key/URL helpers.
"""

from .gateway import (
    BUCKET_NOT_BOUND,
    PUBLIC_URL_NOT_SET,
    Bucket,
    ObjectStorageGateway,
    is_configuration_error,
)
from .keys import generate_object_key, normalize_base_url, public_url
from .models import (
    DeleteResult,
    InMemoryFile,
    ObjectMetadata,
    ObjectSummary,
    StoredObject,
    UploadFile,
    UploadResult,
)

__all__ = [
    "BUCKET_NOT_BOUND",
    "PUBLIC_URL_NOT_SET",
    "Bucket",
    "ObjectStorageGateway",
    "is_configuration_error",
    "generate_object_key",
    "normalize_base_url",
    "public_url",
    "DeleteResult",
    "InMemoryFile",
    "ObjectMetadata",
    "ObjectSummary",
    "StoredObject",
    "UploadFile",
    "UploadResult",
]
