"""
Domain models for file uploads.

These models have no dependencies on FastAPI or boto3. The API layer
maps them to JSON; the service fills them from storage responses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ErrorCode:
    """Error codes produced by the service itself (storage codes pass through)."""
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_FILE_CONTENT = "INVALID_FILE_CONTENT"
    FILE_ALREADY_EXISTS = "FILE_ALREADY_EXISTS"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    BUCKET_NOT_FOUND = "BUCKET_NOT_FOUND"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UploadRequest:
    """A Base64-encoded file and where to put it."""
    file_content: str
    file_name: str
    path_prefix: Optional[str] = None
    content_type: Optional[str] = None
    overwrite: bool = False


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of a single storage operation.

    A failed result always carries an error code; a successful one never
    does. Which of the remaining fields are set depends on the operation:
    uploads fill everything, deletes the key and bucket, connection tests
    only the bucket.
    """
    success: bool
    message: str
    storage_key: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    bucket_name: Optional[str] = None
    error_code: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.success and self.error_code is not None:
            raise ValueError("Successful result cannot carry an error code")
        if not self.success and not self.error_code:
            raise ValueError("Failed result must carry an error code")

    @classmethod
    def succeeded(cls, message: str, **fields) -> "UploadResult":
        return cls(success=True, message=message, **fields)

    @classmethod
    def failed(cls, message: str, error_code: str) -> "UploadResult":
        return cls(success=False, message=message, error_code=error_code)

    @classmethod
    def configuration_error(cls, missing_fields: list[str]) -> "UploadResult":
        """Failure for calls made while the storage client is unavailable."""
        if missing_fields:
            detail = "; ".join(missing_fields)
            message = f"S3 configuration incomplete, check the following settings: {detail}"
        else:
            message = "S3 client is not available, check the storage configuration"
        return cls.failed(message, ErrorCode.CONFIGURATION_ERROR)


@dataclass(frozen=True)
class StorageObjectSummary:
    """Read-only projection of a listed object."""
    key: str
    size: int
    last_modified: Optional[datetime]
    checksum: Optional[str]
    storage_class: Optional[str]


@dataclass(frozen=True)
class ListResult:
    """Outcome of a listing: one page of objects or an error."""
    success: bool
    message: str
    files: list[StorageObjectSummary] = field(default_factory=list)
    error_code: Optional[str] = None

    @property
    def total_count(self) -> int:
        return len(self.files)

    @classmethod
    def failed(cls, message: str, error_code: str) -> "ListResult":
        return cls(success=False, message=message, error_code=error_code)


class ExistenceCheck(Enum):
    """What a HEAD probe on a key told us."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    PROBE_FAILED = "probe_failed"  # could not tell, see ObjectProbe.error_code


@dataclass(frozen=True)
class ObjectProbe:
    """Result of checking whether a key exists."""
    key: str
    state: ExistenceCheck
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.state is ExistenceCheck.FOUND
