"""
Unit tests for storage key, content type and URL helpers.
"""

import re
from datetime import datetime, timezone

import pytest

from src.core.uploads.naming import (
    DEFAULT_CONTENT_TYPE,
    build_file_url,
    build_storage_key,
    determine_content_type,
)

NOW = datetime(2024, 3, 7, 12, 30, tzinfo=timezone.utc)


class TestDetermineContentType:
    """Explicit content types win; otherwise the extension decides."""

    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("photo.jpg", "image/jpeg"),
            ("photo.JPEG", "image/jpeg"),
            ("diagram.png", "image/png"),
            ("anim.gif", "image/gif"),
            ("report.pdf", "application/pdf"),
            ("notes.txt", "text/plain"),
            ("letter.doc", "application/msword"),
            ("letter.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("sheet.xls", "application/vnd.ms-excel"),
            ("sheet.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ]
    )
    def test_known_extensions(self, file_name, expected):
        assert determine_content_type(None, file_name) == expected

    @pytest.mark.parametrize("file_name", ["archive.tar.zst", "README", "trailing."])
    def test_unknown_extensions_fall_back(self, file_name):
        assert determine_content_type(None, file_name) == DEFAULT_CONTENT_TYPE

    def test_explicit_content_type_overrides_extension(self):
        assert determine_content_type("application/json", "photo.png") == "application/json"

    def test_blank_explicit_content_type_is_ignored(self):
        assert determine_content_type("   ", "photo.png") == "image/png"

    def test_explicit_content_type_is_trimmed(self):
        assert determine_content_type(" text/csv ", "data.bin") == "text/csv"


class TestBuildStorageKey:
    """Keys are prefix + unique token + "_" + file name."""

    def test_default_prefix_uses_upload_date(self):
        key = build_storage_key(None, "a.txt", NOW, token="tok")

        assert key == "uploads/2024/03/07/tok_a.txt"

    def test_blank_prefix_uses_default(self):
        key = build_storage_key("  ", "a.txt", NOW, token="tok")

        assert key.startswith("uploads/2024/03/07/")

    def test_prefix_gets_trailing_separator(self):
        assert build_storage_key("docs", "a.txt", NOW, token="tok") == "docs/tok_a.txt"

    def test_prefix_with_separator_is_kept(self):
        assert build_storage_key("docs/2024/", "a.txt", NOW, token="tok") == "docs/2024/tok_a.txt"

    def test_generated_token_is_a_uuid(self):
        key = build_storage_key(None, "a.txt", NOW)

        assert re.fullmatch(r"uploads/2024/03/07/[0-9a-f-]{36}_a\.txt", key)

    def test_same_name_gets_distinct_keys(self):
        first = build_storage_key(None, "a.txt", NOW)
        second = build_storage_key(None, "a.txt", NOW)

        assert first != second


class TestBuildFileUrl:
    """URLs use the custom endpoint when set, else the AWS virtual-hosted form."""

    def test_aws_virtual_hosted_url(self):
        url = build_file_url("uploads/a b.txt", "my-bucket", "eu-west-1")

        assert url == "https://my-bucket.s3.eu-west-1.amazonaws.com/uploads%2Fa%20b.txt"

    def test_custom_endpoint_url(self):
        url = build_file_url("docs/a.txt", "my-bucket", "us-east-1", "http://localhost:9000/")

        assert url == "http://localhost:9000/my-bucket/docs%2Fa.txt"
