"""
Error-code to HTTP status mapping and app-wide exception handlers.

The service reports failures as error codes; routes turn them into
status codes here so every endpoint maps the same code the same way.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .schemas import FileOperationResponse

logger = logging.getLogger(__name__)


STATUS_BY_ERROR_CODE = {
    "CONFIGURATION_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
    "INVALID_FILE_CONTENT": status.HTTP_400_BAD_REQUEST,
    "FILE_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "FILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "BUCKET_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "AccessDenied": status.HTTP_403_FORBIDDEN,
    "InvalidBucketName": status.HTTP_400_BAD_REQUEST,
    "NoSuchBucket": status.HTTP_404_NOT_FOUND,
}


def status_for_error_code(error_code: Optional[str]) -> int:
    """HTTP status for a failure; unknown codes are server errors."""
    if error_code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return STATUS_BY_ERROR_CODE.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def failure_response(message: str, error_code: str, status_code: int) -> JSONResponse:
    """Structured failure body used by every endpoint."""
    body = FileOperationResponse.failure(message, error_code)
    return JSONResponse(status_code=status_code, content=body.to_json())


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        field = ".".join(location) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Request validation failed"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the validation and catch-all handlers on the app."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _format_validation_errors(exc)
        logger.warning(
            "Request validation failed",
            extra={"path": request.url.path, "errors": message}
        )
        return failure_response(
            f"Request validation failed: {message}",
            "VALIDATION_ERROR",
            status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message,
        so stack traces never reach clients.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )
        return failure_response(
            "Internal server error",
            "INTERNAL_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
