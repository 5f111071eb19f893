"""
Object key generation and public URL construction.

Key format is a persisted convention, existing objects are addressed by it:

    {folder}/{unix_millis}_{random_token}.{extension}

Uniqueness comes from the millisecond timestamp plus a random token.
Collisions are possible in principle and are not detected.
"""

import mimetypes
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

from .models import CACHE_CONTROL, DEFAULT_CONTENT_TYPE, ObjectMetadata

DEFAULT_FOLDER = "uploads"
DEFAULT_EXTENSION = "bin"

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase  # base 36
_TOKEN_LENGTH = 11


def file_extension(filename: Optional[str]) -> str:
    """
    Suffix after the last '.', or 'bin' when there isn't one.

    "photo.png" -> "png", "archive.tar.gz" -> "gz", "noext" -> "bin",
    "trailing." -> "bin".
    """
    if not filename or "." not in filename:
        return DEFAULT_EXTENSION
    return filename.rsplit(".", 1)[-1] or DEFAULT_EXTENSION


def random_token(length: int = _TOKEN_LENGTH) -> str:
    """Short lowercase alphanumeric token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_object_key(
    filename: Optional[str],
    folder: str = DEFAULT_FOLDER,
    now: Optional[datetime] = None,
) -> str:
    """Build a fresh key for an upload of `filename` into `folder`."""
    now = now or datetime.now(timezone.utc)
    timestamp_ms = int(now.timestamp() * 1000)
    return f"{folder}/{timestamp_ms}_{random_token()}.{file_extension(filename)}"


def normalize_base_url(url: str) -> str:
    """
    Make a configured public URL usable as a prefix.

    Adds https:// when no http(s) scheme is present and strips one
    trailing slash. "example.com" -> "https://example.com",
    "http://example.com/" -> "http://example.com".
    """
    if not url.startswith("http://") and not url.startswith("https://"):
        url = f"https://{url}"
    if url.endswith("/"):
        url = url[:-1]
    return url


def public_url(base_url: str, key: str) -> str:
    return f"{normalize_base_url(base_url)}/{key}"


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix, e.g. 2024-05-01T12:00:00.000Z"""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def guess_content_type(filename: Optional[str], content_type: Optional[str] = None) -> str:
    if content_type:
        return content_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return DEFAULT_CONTENT_TYPE


def build_metadata(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    uploaded_at: Optional[datetime] = None,
) -> ObjectMetadata:
    """Metadata written with every upload."""
    uploaded_at = uploaded_at or datetime.now(timezone.utc)
    return ObjectMetadata(
        content_type=guess_content_type(filename, content_type),
        cache_control=CACHE_CONTROL,
        custom_metadata={
            "originalName": filename or "",
            "uploadedAt": iso_timestamp(uploaded_at),
            "size": str(size),
        },
    )
