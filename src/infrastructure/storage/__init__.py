"""
Object storage integration for uploaded files.

Supports AWS S3 and S3-compatible stores via boto3.
Includes mock mode for local development without credentials.
"""

from .client import (
    MockS3Client,
    StorageContext,
    create_s3_client,
    create_storage_context,
)

__all__ = [
    "MockS3Client",
    "StorageContext",
    "create_s3_client",
    "create_storage_context",
]
