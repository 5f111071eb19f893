"""
Object storage integration for uploaded files.

Supports R2 (Cloudflare) and S3 (AWS) via S3-compatible API.
Includes mock mode for local development without credentials.
"""

from .client import MockBucket, R2Bucket, StorageConfig, StorageError, create_bucket

__all__ = ["MockBucket", "R2Bucket", "StorageConfig", "StorageError", "create_bucket"]
