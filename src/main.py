"""
FastAPI application entry point.

Using an application factory pattern (create_app function) because:
- Tests can build apps with their own settings and storage client
- The storage client is built exactly once, at app creation
- Initialization order is explicit

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.routes import files, health
from .config.settings import Settings, get_settings
from .core.uploads.service import S3UploadService
from .infrastructure.storage.client import create_storage_context

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup state and shutdown. The storage client is already built."""
    settings: Settings = app.state.settings

    logger.info(
        "S3 upload service starting",
        extra={
            "version": settings.api_version,
            "bucket": settings.aws_s3_bucket_name,
            "mock_mode": settings.storage_mock_mode,
        }
    )

    missing_fields = settings.missing_fields()
    if missing_fields:
        # Keep serving: storage calls answer CONFIGURATION_ERROR until fixed
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("S3 upload service shutting down")


def create_app(
    settings: Optional[Settings] = None,
    storage_client: Optional[Any] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        storage_client: Pre-built S3 client (or fake) to use instead of
            building one from settings
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        REST facade over S3 object storage for Base64-encoded files.

        ## Endpoints

        - `GET  {prefix}/test-connection` - check bucket access
        - `POST {prefix}/upload` - upload a Base64 file
        - `DELETE {prefix}/delete/{key}` - delete a file
        - `GET  {prefix}/list` - list files
        - `GET  {prefix}/health` - liveness plus storage probe
        """.replace("{prefix}", settings.api_prefix),
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    context = create_storage_context(settings, client=storage_client)
    app.state.settings = settings
    app.state.storage_context = context
    app.state.upload_service = S3UploadService(context)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        files.router,
        prefix=settings.api_prefix,
        tags=["Files"],
    )

    app.include_router(
        health.router,
        prefix=settings.api_prefix,
        tags=["Health"],
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": settings.api_title,
            "version": settings.api_version,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health",
        }

    register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
            "storage_ready": context.is_ready,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
