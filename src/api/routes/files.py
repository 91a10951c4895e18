"""
File storage endpoints.

Handlers are plain (sync) functions: boto3 blocks on network I/O, so
FastAPI runs them in its threadpool instead of on the event loop.

Each handler turns a service result into a status code through the
shared error-code table, and catches anything that escapes the service
so clients always get the structured failure body.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Path, Query, status
from fastapi.responses import JSONResponse

from ..dependencies import UploadServiceDep
from ..errors import failure_response, status_for_error_code
from ..schemas import FileListResponse, FileOperationResponse, UploadFileRequest
from ...core.uploads.service import MAX_LIST_KEYS

logger = logging.getLogger(__name__)

router = APIRouter()


def _result_response(response: FileOperationResponse, success_status: int) -> JSONResponse:
    if response.success:
        status_code = success_status
    else:
        status_code = status_for_error_code(response.error_code)
    return JSONResponse(status_code=status_code, content=response.to_json())


@router.get(
    "/test-connection",
    response_model=FileOperationResponse,
    summary="Test the S3 connection",
    responses={503: {"model": FileOperationResponse}, 500: {"model": FileOperationResponse}},
)
def test_connection(service: UploadServiceDep) -> JSONResponse:
    """Check that the configured bucket is reachable. 503 when it is not."""
    logger.info("Received S3 connection test request")
    try:
        result = service.test_connection()
    except Exception as e:
        logger.error("S3 connection test raised", extra={"error": str(e)}, exc_info=e)
        return failure_response(
            f"Connection test error: {e}",
            "TEST_EXCEPTION",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not result.success:
        logger.warning("S3 connection test failed", extra={"reason": result.message})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=FileOperationResponse.from_result(result).to_json(),
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=FileOperationResponse.from_result(result).to_json(),
    )


@router.post(
    "/upload",
    response_model=FileOperationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a Base64-encoded file",
    responses={
        400: {"model": FileOperationResponse},
        409: {"model": FileOperationResponse},
        503: {"model": FileOperationResponse},
    },
)
def upload_file(payload: UploadFileRequest, service: UploadServiceDep) -> JSONResponse:
    logger.info(
        "Received upload request",
        extra={"file_name": payload.file_name, "path_prefix": payload.path_prefix}
    )
    try:
        result = service.upload_file(payload.to_domain())
    except Exception as e:
        logger.error("Upload raised", extra={"error": str(e)}, exc_info=e)
        return failure_response(
            f"Upload error: {e}",
            "UPLOAD_EXCEPTION",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if result.success:
        logger.info("Upload succeeded", extra={"key": result.storage_key})
    else:
        logger.warning("Upload failed", extra={"error_code": result.error_code, "reason": result.message})
    return _result_response(FileOperationResponse.from_result(result), status.HTTP_201_CREATED)


@router.delete(
    "/delete/{key:path}",
    response_model=FileOperationResponse,
    summary="Delete a file by storage key",
    responses={404: {"model": FileOperationResponse}, 503: {"model": FileOperationResponse}},
)
def delete_file(
    key: Annotated[str, Path(min_length=1, pattern=r"\S", description="Storage key, may contain /")],
    service: UploadServiceDep,
) -> JSONResponse:
    logger.info("Received delete request", extra={"key": key})
    try:
        result = service.delete_file(key)
    except Exception as e:
        logger.error("Delete raised", extra={"key": key, "error": str(e)}, exc_info=e)
        return failure_response(
            f"Delete error: {e}",
            "DELETE_EXCEPTION",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not result.success:
        logger.warning("Delete failed", extra={"key": key, "error_code": result.error_code})
    return _result_response(FileOperationResponse.from_result(result), status.HTTP_200_OK)


@router.get(
    "/list",
    response_model=FileListResponse,
    summary="List files in the bucket",
)
def list_files(
    service: UploadServiceDep,
    prefix: Optional[str] = None,
    max_keys: Annotated[int, Query(alias="maxKeys", ge=1)] = 50,
) -> JSONResponse:
    """Return the first page of objects, at most 1000."""
    max_keys = min(max_keys, MAX_LIST_KEYS)
    logger.info("Received list request", extra={"prefix": prefix, "max_keys": max_keys})
    try:
        result = service.list_files(prefix, max_keys)
    except Exception as e:
        logger.error("Listing files raised", extra={"error": str(e)}, exc_info=e)
        body = FileListResponse(
            success=False,
            message=f"Listing files failed: {e}",
            error_code="LIST_EXCEPTION",
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.to_json())

    body = FileListResponse.from_result(result)
    if not result.success:
        logger.warning("Listing files failed", extra={"error_code": result.error_code})
        return JSONResponse(status_code=status_for_error_code(result.error_code), content=body.to_json())

    logger.info("Listed files", extra={"count": result.total_count})
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.to_json())
