"""
Health check endpoint.

Always answers 200 while the process is alive. The body also carries a
live storage probe (the same check as /test-connection), so monitors
can alert on storage problems without the load balancer pulling the
instance out of rotation.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status

from ..dependencies import SettingsDep, UploadServiceDep
from ..schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Health check with storage probe",
)
def health_check(settings: SettingsDep, service: UploadServiceDep) -> HealthResponse:
    logger.debug("Received health check request")

    s3_connection = "UP"
    s3_error = None
    try:
        result = service.test_connection()
        if not result.success:
            s3_connection = "DOWN"
            s3_error = result.message
    except Exception as e:
        logger.error("Storage probe raised during health check", extra={"error": str(e)})
        s3_connection = "DOWN"
        s3_error = str(e)

    return HealthResponse(
        status="UP",
        timestamp=datetime.now(timezone.utc),
        service=settings.api_title,
        version=settings.api_version,
        s3_connection=s3_connection,
        s3_error=s3_error,
    )
