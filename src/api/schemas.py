"""
Request/response models for the storage API.

JSON uses camelCase names (fileContent, s3Key, ...); Python code uses
snake_case. Null fields are dropped from responses.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.uploads.models import ListResult, StorageObjectSummary, UploadRequest, UploadResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UploadFileRequest(CamelModel):
    """Body of POST /upload."""
    file_content: str = Field(description="File content, Base64 encoded")
    file_name: str = Field(description="Original file name, kept at the end of the storage key")
    path_prefix: Optional[str] = Field(
        default=None,
        description="Key prefix. Defaults to uploads/yyyy/MM/dd/"
    )
    content_type: Optional[str] = Field(
        default=None,
        description="MIME type. Inferred from the file extension when omitted"
    )
    overwrite: bool = Field(
        default=False,
        description="Allow replacing an existing object at the same key"
    )

    @field_validator("file_content", "file_name")
    @classmethod
    def must_not_be_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_domain(self) -> UploadRequest:
        return UploadRequest(
            file_content=self.file_content,
            file_name=self.file_name,
            path_prefix=self.path_prefix,
            content_type=self.content_type,
            overwrite=self.overwrite,
        )


class FileOperationResponse(CamelModel):
    """Result of upload, delete and connection test calls."""
    success: bool
    message: str
    s3_key: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    bucket_name: Optional[str] = None
    upload_time: datetime
    error_code: Optional[str] = None

    @classmethod
    def from_result(cls, result: UploadResult) -> "FileOperationResponse":
        return cls(
            success=result.success,
            message=result.message,
            s3_key=result.storage_key,
            file_url=result.file_url,
            file_size=result.file_size,
            content_type=result.content_type,
            bucket_name=result.bucket_name,
            upload_time=result.timestamp,
            error_code=result.error_code,
        )

    @classmethod
    def failure(cls, message: str, error_code: str) -> "FileOperationResponse":
        return cls(
            success=False,
            message=message,
            upload_time=datetime.now(timezone.utc),
            error_code=error_code,
        )


class FileInfo(CamelModel):
    key: str
    size: int
    last_modified: Optional[datetime] = None
    checksum: Optional[str] = None
    storage_class: Optional[str] = None

    @classmethod
    def from_summary(cls, summary: StorageObjectSummary) -> "FileInfo":
        return cls(
            key=summary.key,
            size=summary.size,
            last_modified=summary.last_modified,
            checksum=summary.checksum,
            storage_class=summary.storage_class,
        )


class FileListResponse(CamelModel):
    """Body of GET /list."""
    success: bool
    message: str
    total_count: int = 0
    files: list[FileInfo] = Field(default_factory=list)
    error_code: Optional[str] = None

    @classmethod
    def from_result(cls, result: ListResult) -> "FileListResponse":
        return cls(
            success=result.success,
            message=result.message,
            total_count=result.total_count,
            files=[FileInfo.from_summary(f) for f in result.files],
            error_code=result.error_code,
        )


class HealthResponse(CamelModel):
    """
    Health check response.

    The process is UP whenever it answers; s3_connection reports the
    storage probe separately so monitors can tell the two apart.
    """
    status: str
    timestamp: datetime
    service: str
    version: str
    s3_connection: str
    s3_error: Optional[str] = None
