"""
Object storage client for uploaded files.

Talks to AWS S3 or any S3-compatible store (MinIO, R2, LocalStack)
through boto3. The client is built once at startup and shared by every
request; boto3 low-level clients are safe to reuse across threads.

Mock mode keeps objects in memory, enabling API testing without
provisioning actual object storage.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import ClientError, ParamValidationError

from ...config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageContext:
    """
    Process-wide storage state: the settings and the client built from them.

    client is None when the settings are incomplete or the client could
    not be constructed. Every storage operation checks for that first.
    """
    settings: Settings
    client: Optional[Any]

    @property
    def bucket_name(self) -> str:
        return self.settings.aws_s3_bucket_name.strip()

    @property
    def is_ready(self) -> bool:
        return self.client is not None and self.settings.is_valid()


def create_s3_client(settings: Settings) -> Optional[BaseClient]:
    """
    Build a boto3 S3 client from settings.

    Returns None instead of raising when the configuration is incomplete
    or the SDK rejects it (malformed endpoint, bad region, ...). The
    service reports CONFIGURATION_ERROR for every call in that case.
    """
    if not settings.is_valid():
        missing = settings.missing_fields()
        logger.error(
            "S3 configuration incomplete, storage client not created",
            extra={"missing_fields": missing}
        )
        logger.info(
            "Set AWS_S3_ACCESS_KEY, AWS_S3_SECRET_KEY, AWS_S3_REGION and "
            "AWS_S3_BUCKET_NAME in the environment or .env file"
        )
        return None

    try:
        boto_config = Config(
            connect_timeout=settings.aws_s3_connection_timeout_ms / 1000,
            read_timeout=settings.aws_s3_read_timeout_ms / 1000,
            s3={"addressing_style": "path"} if settings.aws_s3_path_style_access else None,
        )

        client = boto3.client(
            "s3",
            region_name=settings.aws_s3_region.strip(),
            aws_access_key_id=settings.aws_s3_access_key.strip(),
            aws_secret_access_key=settings.aws_s3_secret_key.strip(),
            endpoint_url=settings.custom_endpoint,
            config=boto_config,
        )
    except Exception as e:
        logger.error(
            "Failed to create S3 client",
            extra={"error": str(e)},
            exc_info=e,
        )
        return None

    logger.info(
        "Initialized S3 storage client",
        extra={
            "region": settings.aws_s3_region,
            "bucket": settings.aws_s3_bucket_name,
            "endpoint": settings.custom_endpoint,
            "path_style": settings.aws_s3_path_style_access,
        }
    )
    return client


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

def _client_error(code: str, message: str, operation: str) -> ClientError:
    """Build a ClientError shaped like the ones botocore raises."""
    status = int(code) if code.isdigit() else 404
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class MockS3Client:
    """
    In-memory S3 stand-in.

    Implements only the calls the upload service makes, with the same
    argument names and response shapes as a boto3 client. HEAD requests
    on missing buckets or keys raise ClientError with code "404", as
    real S3 does since HEAD responses carry no error body.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, bucket_name: str) -> None:
        self._bucket_name = bucket_name
        self._objects: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        logger.info("Initialized mock storage client (in-memory)")

    def _check_bucket(self, bucket: str, operation: str, head: bool = False) -> None:
        if bucket != self._bucket_name:
            if head:
                raise _client_error("404", "Not Found", operation)
            raise _client_error(
                "NoSuchBucket", "The specified bucket does not exist", operation
            )

    def head_bucket(self, Bucket: str) -> dict:
        self._check_bucket(Bucket, "HeadBucket", head=True)
        return {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def head_object(self, Bucket: str, Key: str) -> dict:
        self._check_bucket(Bucket, "HeadObject", head=True)
        with self._lock:
            obj = self._objects.get(Key)
        if obj is None:
            raise _client_error("404", "Not Found", "HeadObject")
        return {
            "ContentLength": obj["Size"],
            "ContentType": obj["ContentType"],
            "ETag": obj["ETag"],
            "LastModified": obj["LastModified"],
            "Metadata": dict(obj["Metadata"]),
        }

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str = "binary/octet-stream",
        ContentLength: Optional[int] = None,
        Metadata: Optional[dict] = None,
    ) -> dict:
        self._check_bucket(Bucket, "PutObject")
        for name, value in (Metadata or {}).items():
            if not (name.isascii() and value.isascii()):
                raise ParamValidationError(
                    report=f"Non ascii characters found in S3 metadata for key \"{name}\""
                )
        etag = f'"{hashlib.md5(Body).hexdigest()}"'
        with self._lock:
            self._objects[Key] = {
                "Body": bytes(Body),
                "Size": len(Body),
                "ContentType": ContentType,
                "ETag": etag,
                "LastModified": datetime.now(timezone.utc),
                "Metadata": dict(Metadata or {}),
            }
        logger.debug(
            "Stored object in mock storage",
            extra={"key": Key, "size_bytes": len(Body)}
        )
        return {"ETag": etag}

    def delete_object(self, Bucket: str, Key: str) -> dict:
        self._check_bucket(Bucket, "DeleteObject")
        with self._lock:
            self._objects.pop(Key, None)
        return {"ResponseMetadata": {"HTTPStatusCode": 204}}

    def list_objects_v2(
        self,
        Bucket: str,
        MaxKeys: int = 1000,
        Prefix: str = "",
    ) -> dict:
        self._check_bucket(Bucket, "ListObjectsV2")
        with self._lock:
            keys = sorted(k for k in self._objects if k.startswith(Prefix))
            page = keys[:MaxKeys]
            contents = [
                {
                    "Key": key,
                    "Size": self._objects[key]["Size"],
                    "LastModified": self._objects[key]["LastModified"],
                    "ETag": self._objects[key]["ETag"],
                    "StorageClass": "STANDARD",
                }
                for key in page
            ]

        response: dict[str, Any] = {
            "Name": Bucket,
            "Prefix": Prefix,
            "MaxKeys": MaxKeys,
            "KeyCount": len(contents),
            "IsTruncated": len(keys) > len(page),
        }
        # S3 omits Contents entirely for an empty page
        if contents:
            response["Contents"] = contents
        return response


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_context(
    settings: Settings,
    client: Optional[Any] = None,
) -> StorageContext:
    """
    Create the storage context used for the lifetime of the process.

    Args:
        settings: Loaded application settings
        client: Pre-built client to use as-is (tests inject fakes here)

    Returns:
        StorageContext holding an S3 client, a mock client, or None
    """
    if client is not None:
        return StorageContext(settings=settings, client=client)

    if settings.storage_mock_mode:
        if not settings.is_valid():
            logger.error(
                "Mock storage needs a bucket name",
                extra={"missing_fields": settings.missing_fields()}
            )
            return StorageContext(settings=settings, client=None)
        logger.warning(
            "STORAGE_MOCK_MODE is on, files are kept in memory and credentials are not checked",
            extra={"bucket": settings.aws_s3_bucket_name}
        )
        mock = MockS3Client(settings.aws_s3_bucket_name.strip())
        return StorageContext(settings=settings, client=mock)

    return StorageContext(settings=settings, client=create_s3_client(settings))
