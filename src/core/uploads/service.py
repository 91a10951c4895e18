"""
Upload service: translates upload requests into S3 calls.

Every public method returns a result object instead of raising, so the
API layer can map outcomes to status codes in one place. Storage errors
keep their native S3 error code (AccessDenied, NoSuchBucket, ...);
anything else becomes UNKNOWN_ERROR.

The service holds no mutable state. One instance is shared by all
requests for the lifetime of the process.
"""

import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from botocore.exceptions import ClientError

from ...infrastructure.storage.client import StorageContext
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

logger = logging.getLogger(__name__)

MAX_LIST_KEYS = 1000
UPLOADED_BY = "s3-upload-service"

# HEAD responses have no body, so S3 reports these as bare status codes
_ABSENT_CODES = frozenset({"404", "NotFound", "NoSuchKey", "NoSuchBucket"})
_CODE_ALIASES = {"403": "AccessDenied"}


def storage_error_code(error: ClientError) -> str:
    """Native error code of a botocore ClientError, normalized for HEAD calls."""
    code = error.response.get("Error", {}).get("Code")
    if not code:
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        code = str(status) if status else ErrorCode.UNKNOWN_ERROR
    return _CODE_ALIASES.get(code, code)


def decode_base64(content: str) -> bytes:
    """
    Decode standard Base64, treating trailing "=" padding as optional.

    Characters outside the Base64 alphabet are rejected. A length of one
    more than a multiple of four can never be valid, so it is not padded.
    """
    if len(content) % 4 not in (0, 1):
        content += "=" * (-len(content) % 4)
    return base64.b64decode(content, validate=True)


class S3UploadService:
    """
    Upload, delete, list and probe files in the configured bucket.

    Usage:
        service = S3UploadService(create_storage_context(settings))
        result = service.upload_file(UploadRequest(file_content=..., file_name="a.txt"))
    """

    def __init__(self, context: StorageContext) -> None:
        self._context = context

    @property
    def bucket_name(self) -> str:
        return self._context.bucket_name

    def _configuration_error(self) -> UploadResult:
        return UploadResult.configuration_error(self._context.settings.missing_fields())

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def test_connection(self) -> UploadResult:
        """Check that the bucket exists and the credentials can reach it."""
        logger.info("Testing S3 connection", extra={"bucket": self.bucket_name})

        if not self._context.is_ready:
            logger.error(
                "S3 client not available, check configuration",
                extra={"missing_fields": self._context.settings.missing_fields()}
            )
            return self._configuration_error()

        try:
            self._context.client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            code = storage_error_code(e)
            if code in _ABSENT_CODES:
                logger.error("Bucket does not exist", extra={"bucket": self.bucket_name})
                return UploadResult.failed(
                    f"Bucket '{self.bucket_name}' does not exist",
                    ErrorCode.BUCKET_NOT_FOUND,
                )
            logger.error("S3 connection test failed", extra={"error_code": code, "error": str(e)})
            return UploadResult.failed(f"S3 connection failed: {e}", code)
        except Exception as e:
            logger.error(
                "Unexpected error during S3 connection test",
                extra={"error": str(e)},
                exc_info=e,
            )
            return UploadResult.failed(f"Connection test failed: {e}", ErrorCode.UNKNOWN_ERROR)

        logger.info("S3 connection test succeeded", extra={"bucket": self.bucket_name})
        return UploadResult.succeeded(
            "S3 connection test succeeded",
            bucket_name=self.bucket_name,
        )

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_file(self, request: UploadRequest) -> UploadResult:
        """
        Decode a Base64 payload and store it under a fresh unique key.

        Steps:
        1. Decode the content (INVALID_FILE_CONTENT on bad Base64, nothing written)
        2. Build the key: prefix (default uploads/yyyy/MM/dd/) + token + "_" + name
        3. Refuse to replace an existing object unless overwrite is set
        4. Resolve the content type and put the object with fixed metadata
        """
        logger.info("Uploading file", extra={"file_name": request.file_name})

        if not self._context.is_ready:
            logger.error("S3 client not available, upload rejected")
            return self._configuration_error()

        try:
            data = decode_base64(request.file_content)
        except (binascii.Error, ValueError) as e:
            logger.warning("File content is not valid Base64", extra={"error": str(e)})
            return UploadResult.failed(
                "File content is not valid Base64",
                ErrorCode.INVALID_FILE_CONTENT,
            )

        try:
            now = datetime.now(timezone.utc)
            key = build_storage_key(request.path_prefix, request.file_name, now)
            logger.debug("Generated storage key", extra={"key": key, "size_bytes": len(data)})

            if not request.overwrite:
                probe = self.check_file(key)
                if probe.found:
                    logger.warning("File already exists and overwrite is off", extra={"key": key})
                    return UploadResult.failed(
                        "File already exists, set overwrite=true to replace it",
                        ErrorCode.FILE_ALREADY_EXISTS,
                    )

            content_type = determine_content_type(request.content_type, request.file_name)

            response = self._context.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                ContentLength=len(data),
                Metadata={
                    # S3 user metadata must be ASCII
                    "original-filename": quote(request.file_name),
                    "upload-timestamp": now.isoformat(),
                    "uploaded-by": UPLOADED_BY,
                },
            )
        except ClientError as e:
            code = storage_error_code(e)
            logger.error("S3 upload failed", extra={"error_code": code, "error": str(e)})
            return UploadResult.failed(f"S3 upload failed: {e}", code)
        except Exception as e:
            logger.error(
                "Unexpected error during upload",
                extra={"file_name": request.file_name, "error": str(e)},
                exc_info=e,
            )
            return UploadResult.failed(f"File upload failed: {e}", ErrorCode.UNKNOWN_ERROR)

        logger.info(
            "File uploaded",
            extra={"key": key, "etag": response.get("ETag"), "size_bytes": len(data)}
        )

        settings = self._context.settings
        return UploadResult.succeeded(
            "File uploaded successfully",
            storage_key=key,
            file_url=build_file_url(
                key,
                self.bucket_name,
                settings.aws_s3_region.strip(),
                settings.custom_endpoint,
            ),
            file_size=len(data),
            content_type=content_type,
            bucket_name=self.bucket_name,
        )

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    def check_file(self, key: str) -> ObjectProbe:
        """
        Probe a key with HEAD.

        Distinguishes "not there" from "could not tell": callers decide
        what a failed probe means for them.
        """
        if self._context.client is None:
            return ObjectProbe(
                key=key,
                state=ExistenceCheck.PROBE_FAILED,
                error_code=ErrorCode.CONFIGURATION_ERROR,
                error_message="S3 client is not available",
            )

        try:
            self._context.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            code = storage_error_code(e)
            if code in _ABSENT_CODES:
                return ObjectProbe(key=key, state=ExistenceCheck.NOT_FOUND)
            logger.warning(
                "Could not check whether file exists",
                extra={"key": key, "error_code": code, "error": str(e)}
            )
            return ObjectProbe(
                key=key,
                state=ExistenceCheck.PROBE_FAILED,
                error_code=code,
                error_message=str(e),
            )
        except Exception as e:
            logger.warning(
                "Could not check whether file exists",
                extra={"key": key, "error": str(e)}
            )
            return ObjectProbe(
                key=key,
                state=ExistenceCheck.PROBE_FAILED,
                error_code=ErrorCode.UNKNOWN_ERROR,
                error_message=str(e),
            )

        return ObjectProbe(key=key, state=ExistenceCheck.FOUND)

    def file_exists(self, key: str) -> bool:
        """True only when the object is confirmed to exist."""
        return self.check_file(key).found

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_file(self, key: str) -> UploadResult:
        logger.info("Deleting file", extra={"key": key})

        if not self._context.is_ready:
            return self._configuration_error()

        probe = self.check_file(key)
        if probe.state is ExistenceCheck.NOT_FOUND:
            logger.warning("File to delete does not exist", extra={"key": key})
            return UploadResult.failed(f"File not found: {key}", ErrorCode.FILE_NOT_FOUND)
        if probe.state is ExistenceCheck.PROBE_FAILED:
            return UploadResult.failed(
                f"Delete failed: {probe.error_message}",
                probe.error_code or ErrorCode.UNKNOWN_ERROR,
            )

        try:
            self._context.client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            code = storage_error_code(e)
            logger.error("S3 delete failed", extra={"key": key, "error_code": code, "error": str(e)})
            return UploadResult.failed(f"Delete failed: {e}", code)
        except Exception as e:
            logger.error(
                "Unexpected error during delete",
                extra={"key": key, "error": str(e)},
                exc_info=e,
            )
            return UploadResult.failed(f"Delete failed: {e}", ErrorCode.UNKNOWN_ERROR)

        logger.info("File deleted", extra={"key": key})
        return UploadResult.succeeded(
            "File deleted successfully",
            storage_key=key,
            bucket_name=self.bucket_name,
        )

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list_files(self, prefix: Optional[str] = None, max_keys: int = 50) -> ListResult:
        """
        List up to max_keys objects, optionally under a prefix.

        Only the first page is returned; max_keys is clamped to 1..1000.
        """
        max_keys = max(1, min(max_keys, MAX_LIST_KEYS))
        logger.info("Listing files", extra={"prefix": prefix, "max_keys": max_keys})

        if not self._context.is_ready:
            config_error = self._configuration_error()
            return ListResult.failed(config_error.message, ErrorCode.CONFIGURATION_ERROR)

        params = {"Bucket": self.bucket_name, "MaxKeys": max_keys}
        if prefix and prefix.strip():
            params["Prefix"] = prefix

        try:
            response = self._context.client.list_objects_v2(**params)
        except ClientError as e:
            code = storage_error_code(e)
            logger.error("S3 list failed", extra={"error_code": code, "error": str(e)})
            return ListResult.failed(f"Listing files failed: {e}", code)
        except Exception as e:
            logger.error(
                "Unexpected error while listing files",
                extra={"error": str(e)},
                exc_info=e,
            )
            return ListResult.failed(f"Listing files failed: {e}", ErrorCode.UNKNOWN_ERROR)

        files = [
            StorageObjectSummary(
                key=obj["Key"],
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
                checksum=obj.get("ETag"),
                storage_class=obj.get("StorageClass"),
            )
            for obj in response.get("Contents", [])[:max_keys]
        ]

        logger.info("Listed files", extra={"count": len(files)})
        return ListResult(success=True, message="Files listed successfully", files=files)
