"""
Unit tests for key generation, URL normalization and upload metadata.

These are pure functions, so no buckets or mocks are needed.
"""

import re
from datetime import datetime, timezone

import pytest

from src.core.storage.keys import (
    build_metadata,
    file_extension,
    generate_object_key,
    guess_content_type,
    iso_timestamp,
    normalize_base_url,
    public_url,
    random_token,
)
from src.core.storage.models import CACHE_CONTROL


# ---------------------------------------------------------------------------
# Extension and Key Tests
# ---------------------------------------------------------------------------

class TestFileExtension:
    """Tests for deriving the key extension from a filename."""

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("photo.png", "png"),
            ("archive.tar.gz", "gz"),
            ("noext", "bin"),
            ("trailing.", "bin"),
            ("", "bin"),
            (None, "bin"),
        ],
    )
    def test_extension(self, filename, expected):
        assert file_extension(filename) == expected


class TestGenerateObjectKey:
    """Tests for the {folder}/{millis}_{token}.{ext} key format."""

    def test_key_matches_format(self):
        """Folder, millisecond timestamp, token and extension in order."""
        key = generate_object_key("photo.png", "avatars")
        assert re.fullmatch(r"avatars/\d+_[0-9a-z]+\.png", key)

    def test_folder_defaults_to_uploads(self):
        key = generate_object_key("report.pdf")
        assert key.startswith("uploads/")

    def test_missing_extension_defaults_to_bin(self):
        key = generate_object_key("noext", "docs")
        assert re.fullmatch(r"docs/\d+_[0-9a-z]+\.bin", key)

    def test_timestamp_is_unix_millis(self):
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        key = generate_object_key("a.txt", "f", now=now)
        assert key.startswith("f/1714564800000_")

    def test_keys_differ_between_calls(self):
        """Same file, same folder, same millisecond still gets distinct keys."""
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        keys = {generate_object_key("a.txt", now=now) for _ in range(50)}
        assert len(keys) == 50


class TestRandomToken:
    def test_token_is_lowercase_alphanumeric(self):
        token = random_token()
        assert re.fullmatch(r"[0-9a-z]{11}", token)

    def test_custom_length(self):
        assert len(random_token(4)) == 4


# ---------------------------------------------------------------------------
# URL Tests
# ---------------------------------------------------------------------------

class TestNormalizeBaseUrl:
    """Tests for turning the configured public URL into a prefix."""

    def test_adds_https_when_no_scheme(self):
        assert normalize_base_url("example.com") == "https://example.com"

    def test_keeps_http_and_strips_trailing_slash(self):
        assert normalize_base_url("http://example.com/") == "http://example.com"

    def test_keeps_https(self):
        assert normalize_base_url("https://cdn.example.com") == "https://cdn.example.com"

    def test_strips_only_one_trailing_slash(self):
        assert normalize_base_url("https://example.com//") == "https://example.com/"

    def test_public_url_joins_base_and_key(self):
        url = public_url("pub.r2.dev/", "uploads/1_abc.png")
        assert url == "https://pub.r2.dev/uploads/1_abc.png"


# ---------------------------------------------------------------------------
# Metadata Tests
# ---------------------------------------------------------------------------

class TestBuildMetadata:
    """Tests for the metadata written with each upload."""

    def test_custom_metadata_fields(self):
        uploaded_at = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        metadata = build_metadata("photo.png", "image/png", 1234, uploaded_at)

        assert metadata.content_type == "image/png"
        assert metadata.cache_control == "public, max-age=31536000"
        assert metadata.custom_metadata == {
            "originalName": "photo.png",
            "uploadedAt": "2024-05-01T12:00:00.000Z",
            "size": "1234",
        }

    def test_cache_control_is_one_year(self):
        assert CACHE_CONTROL == "public, max-age=31536000"

    def test_content_type_guessed_when_missing(self):
        metadata = build_metadata("photo.png", None, 1)
        assert metadata.content_type == "image/png"

    def test_unknown_content_type_falls_back_to_octet_stream(self):
        assert guess_content_type("noext", None) == "application/octet-stream"

    def test_iso_timestamp_converts_to_utc(self):
        from datetime import timedelta

        moment = datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert iso_timestamp(moment) == "2024-05-01T12:30:00.000Z"
