"""
FastAPI dependency injection.

The settings, storage context and upload service are created once in
create_app() and kept on app.state. Dependencies hand them to route
handlers, so routes never build their own clients and tests can swap
in fakes through create_app(storage_client=...).
"""

from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.uploads.service import S3UploadService


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_upload_service(request: Request) -> S3UploadService:
    """Shared upload service bound to the process-wide storage context."""
    return request.app.state.upload_service


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
UploadServiceDep = Annotated[S3UploadService, Depends(get_upload_service)]
