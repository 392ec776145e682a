"""FastAPI application factory.

Main entry point for the StudyTrack Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studytrack.config.app_config import load_app_config
from studytrack.core.errors import NotFoundError, StorageError, StudyTrackError
from studytrack.core.tracker_service import TrackerService
from studytrack.web.routes import (
    health_router,
    semesters_router,
    syllabus_router,
    tests_router,
    theme_router,
    trackers_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    logger.info(
        "api_startup",
        db_path=str(config.storage.db_path.absolute()),
        service_attached=getattr(app.state, "service", None) is not None,
    )
    yield


async def studytrack_error_handler(request: Request, exc: StudyTrackError) -> JSONResponse:
    """Map domain errors to HTTP responses with a readable detail."""
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StorageError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.warning(
        "api.request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        message=exc.message,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def create_app(service: TrackerService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Service to serve requests with. When omitted, one is
            opened from the app config on the first request.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="StudyTrack API",
        description="Web API for semester syllabus and test tracking",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StudyTrackError, studytrack_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(semesters_router)
    app.include_router(trackers_router)
    app.include_router(syllabus_router)
    app.include_router(tests_router)
    app.include_router(theme_router)

    return app


# Default app instance for uvicorn
app = create_app()
