"""
File upload logic.

Contains the upload service, its domain models and key/content-type helpers.
"""

from .models import (
    ErrorCode,
    ExistenceCheck,
    ListResult,
    ObjectProbe,
    StorageObjectSummary,
    UploadRequest,
    UploadResult,
)
from .naming import build_file_url, build_storage_key, determine_content_type
from .service import S3UploadService

__all__ = [
    "ErrorCode",
    "ExistenceCheck",
    "ListResult",
    "ObjectProbe",
    "StorageObjectSummary",
    "UploadRequest",
    "UploadResult",
    "build_file_url",
    "build_storage_key",
    "determine_content_type",
    "S3UploadService",
]
