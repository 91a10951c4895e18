"""
Shared fixtures.

Tests never talk to real S3. The in-memory MockS3Client stands in for a
boto3 client; FlakyS3Client wraps it to raise chosen errors per call.
"""

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from src.config.settings import Settings
from src.core.uploads.service import S3UploadService
from src.infrastructure.storage.client import MockS3Client, create_storage_context
from src.main import create_app

TEST_BUCKET = "test-bucket"


def make_settings(**overrides) -> Settings:
    """Complete settings that ignore any local .env file."""
    values = {
        "aws_s3_access_key": "test-access-key",
        "aws_s3_secret_key": "test-secret-key",
        "aws_s3_region": "us-east-1",
        "aws_s3_bucket_name": TEST_BUCKET,
        "aws_s3_endpoint_url": None,
        "storage_mock_mode": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def client_error(code: str, operation: str = "PutObject", status: int = 400) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised for test"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FlakyS3Client(MockS3Client):
    """MockS3Client that raises a configured exception for chosen operations."""

    def __init__(self, bucket_name: str = TEST_BUCKET, failures: dict | None = None) -> None:
        super().__init__(bucket_name)
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, dict]] = []

    def _call(self, operation: str, kwargs: dict) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.failures:
            raise self.failures[operation]

    def head_bucket(self, **kwargs):
        self._call("head_bucket", kwargs)
        return super().head_bucket(**kwargs)

    def head_object(self, **kwargs):
        self._call("head_object", kwargs)
        return super().head_object(**kwargs)

    def put_object(self, **kwargs):
        self._call("put_object", kwargs)
        return super().put_object(**kwargs)

    def delete_object(self, **kwargs):
        self._call("delete_object", kwargs)
        return super().delete_object(**kwargs)

    def list_objects_v2(self, **kwargs):
        self._call("list_objects_v2", kwargs)
        return super().list_objects_v2(**kwargs)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_client() -> MockS3Client:
    return MockS3Client(TEST_BUCKET)


@pytest.fixture
def service(settings: Settings, mock_client: MockS3Client) -> S3UploadService:
    return S3UploadService(create_storage_context(settings, client=mock_client))


@pytest.fixture
def api_client(settings: Settings, mock_client: MockS3Client) -> TestClient:
    """FastAPI test client backed by the in-memory store."""
    app = create_app(settings=settings, storage_client=mock_client)
    return TestClient(app)
