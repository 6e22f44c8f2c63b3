import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from beatcut.core.config import settings
from beatcut.core.exceptions import (
    BeatcutError,
    InputError,
    beatcut_exception_handler,
    general_exception_handler,
    http_exception_handler,
    input_exception_handler,
    validation_exception_handler,
)
from beatcut.core.middleware import RequestLoggingMiddleware
from beatcut.presentation.api.v1.routers import beats, health

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=settings.log_format,
    datefmt=settings.log_date_format,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info(
        "Starting Beatcut API (provider=%s, strategy=%s)...",
        settings.candidate_provider,
        settings.beat_strategy,
    )
    yield
    logger.info("Shutting down Beatcut API...")


def create_application() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(InputError, input_exception_handler)
    app.add_exception_handler(BeatcutError, beatcut_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include API routers under versioned prefix
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(beats.router, tags=["beats"])
    api_v1.include_router(health.router)
    app.include_router(api_v1)

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    dev_mode = os.getenv("DEV_MODE", "true").lower() == "true"
    uvicorn.run(
        "beatcut.presentation.main:app",
        host=settings.host,
        port=settings.port,
        reload=dev_mode,
    )
