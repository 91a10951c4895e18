"""
Unit tests for the storage client factory and the in-memory client.

Building a boto3 client does not open any connection, so these tests
inspect real clients without network access.
"""

import logging

import pytest
from botocore.exceptions import ClientError, ParamValidationError

from src.infrastructure.storage.client import (
    MockS3Client,
    create_s3_client,
    create_storage_context,
)
from tests.conftest import TEST_BUCKET, make_settings


class TestCreateS3Client:
    """create_s3_client returns a configured client or None, never raises."""

    def test_invalid_settings_return_none(self):
        settings = make_settings(aws_s3_secret_key="")

        assert create_s3_client(settings) is None

    def test_builds_client_with_region_and_timeouts(self):
        settings = make_settings(
            aws_s3_region="eu-central-1",
            aws_s3_connection_timeout_ms=1500,
            aws_s3_read_timeout_ms=2500,
        )

        client = create_s3_client(settings)

        assert client is not None
        assert client.meta.region_name == "eu-central-1"
        assert client.meta.config.connect_timeout == 1.5
        assert client.meta.config.read_timeout == 2.5

    def test_custom_endpoint_and_path_style(self):
        settings = make_settings(
            aws_s3_endpoint_url="http://localhost:9000",
            aws_s3_path_style_access=True,
        )

        client = create_s3_client(settings)

        assert client.meta.endpoint_url == "http://localhost:9000"
        assert client.meta.config.s3["addressing_style"] == "path"

    def test_malformed_endpoint_returns_none(self):
        settings = make_settings(aws_s3_endpoint_url="not a url")

        assert create_s3_client(settings) is None


class TestCreateStorageContext:
    def test_injected_client_is_used_as_is(self):
        client = MockS3Client(TEST_BUCKET)

        context = create_storage_context(make_settings(), client=client)

        assert context.client is client
        assert context.is_ready
        assert context.bucket_name == TEST_BUCKET

    def test_mock_mode_builds_in_memory_client(self):
        settings = make_settings(storage_mock_mode=True, aws_s3_access_key="", aws_s3_secret_key="")

        context = create_storage_context(settings)

        assert isinstance(context.client, MockS3Client)
        assert context.is_ready

    def test_mock_mode_logs_warning(self, caplog):
        settings = make_settings(storage_mock_mode=True)

        with caplog.at_level(logging.WARNING, logger="src.infrastructure.storage.client"):
            create_storage_context(settings)

        assert any("STORAGE_MOCK_MODE" in record.getMessage() for record in caplog.records)

    def test_mock_mode_without_bucket_has_no_client(self):
        settings = make_settings(storage_mock_mode=True, aws_s3_bucket_name="")

        context = create_storage_context(settings)

        assert context.client is None
        assert not context.is_ready

    def test_invalid_settings_give_context_without_client(self):
        context = create_storage_context(make_settings(aws_s3_access_key=""))

        assert context.client is None
        assert not context.is_ready


class TestMockS3Client:
    """The in-memory client raises the same error shapes as S3."""

    @pytest.fixture
    def client(self) -> MockS3Client:
        return MockS3Client(TEST_BUCKET)

    def test_head_missing_key_raises_404(self, client):
        with pytest.raises(ClientError) as exc_info:
            client.head_object(Bucket=TEST_BUCKET, Key="missing")

        assert exc_info.value.response["Error"]["Code"] == "404"

    def test_head_other_bucket_raises_404(self, client):
        with pytest.raises(ClientError) as exc_info:
            client.head_bucket(Bucket="other-bucket")

        assert exc_info.value.response["Error"]["Code"] == "404"

    def test_put_to_other_bucket_raises_no_such_bucket(self, client):
        with pytest.raises(ClientError) as exc_info:
            client.put_object(Bucket="other-bucket", Key="k", Body=b"x")

        assert exc_info.value.response["Error"]["Code"] == "NoSuchBucket"

    def test_put_then_head_returns_metadata(self, client):
        client.put_object(
            Bucket=TEST_BUCKET,
            Key="a.txt",
            Body=b"hello",
            ContentType="text/plain",
            Metadata={"uploaded-by": "tests"},
        )

        head = client.head_object(Bucket=TEST_BUCKET, Key="a.txt")

        assert head["ContentLength"] == 5
        assert head["ContentType"] == "text/plain"
        assert head["Metadata"] == {"uploaded-by": "tests"}

    def test_put_rejects_non_ascii_metadata(self, client):
        with pytest.raises(ParamValidationError):
            client.put_object(
                Bucket=TEST_BUCKET,
                Key="a.txt",
                Body=b"x",
                Metadata={"original-filename": "报告.txt"},
            )

        with pytest.raises(ClientError):
            client.head_object(Bucket=TEST_BUCKET, Key="a.txt")

    def test_list_is_sorted_filtered_and_limited(self, client):
        for key in ["b/2", "a/1", "b/1", "b/3"]:
            client.put_object(Bucket=TEST_BUCKET, Key=key, Body=b"x")

        response = client.list_objects_v2(Bucket=TEST_BUCKET, Prefix="b/", MaxKeys=2)

        assert [obj["Key"] for obj in response["Contents"]] == ["b/1", "b/2"]
        assert response["IsTruncated"] is True

    def test_empty_list_has_no_contents(self, client):
        response = client.list_objects_v2(Bucket=TEST_BUCKET)

        assert "Contents" not in response
        assert response["KeyCount"] == 0
