"""
FastAPI dependency injection.

Dependencies provide the gateway, its bucket, and configuration to
route handlers. Routes never build their own storage clients, so tests
can override these with app.dependency_overrides.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.storage.gateway import Bucket, ObjectStorageGateway
from ..infrastructure.storage.client import StorageConfig, create_bucket

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock bucket (shared across requests so uploads persist)
_mock_bucket = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Storage Dependencies
# ---------------------------------------------------------------------------

def get_bucket(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[Bucket]:
    """
    Provide the bucket, or None when it can't be bound.

    A missing bucket is not an error here; the gateway turns it into a
    configuration error result for the caller.

    In mock mode, we reuse the same bucket across requests so that
    uploaded objects persist during the session.
    """
    global _mock_bucket

    if settings.r2_mock_mode:
        if _mock_bucket is None:
            _mock_bucket = create_bucket(mock_mode=True)
            logger.info("Created shared mock bucket for session")
        return _mock_bucket

    if not settings.bucket_configured:
        logger.warning(
            "R2 bucket not bound",
            extra={"missing_fields": settings.validate_required_fields()}
        )
        return None

    config = StorageConfig(
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
        bucket_name=settings.r2_bucket_name,
        endpoint_url=settings.r2_endpoint,
    )
    bucket = create_bucket(config=config)
    logger.debug("Created R2 bucket")
    return bucket


def get_gateway(
    settings: Annotated[Settings, Depends(get_settings)],
    bucket: Annotated[Optional[Bucket], Depends(get_bucket)],
) -> ObjectStorageGateway:
    """Provide the gateway. Cheap to build, so one per request."""
    return ObjectStorageGateway(bucket=bucket, base_url=settings.r2_public_url or None)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
GatewayDep = Annotated[ObjectStorageGateway, Depends(get_gateway)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
