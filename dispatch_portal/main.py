"""
Main application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from dispatch_portal.api.app import create_app
from dispatch_portal.config.logging import configure_logging, get_logger
from dispatch_portal.config.settings import settings

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "Starting Service Request Dispatch Portal",
        environment=settings.ENVIRONMENT,
        storage_backend=settings.STORAGE_BACKEND,
    )
    yield
    logger.info("Shutting down Service Request Dispatch Portal")


def create_main_app() -> FastAPI:
    """Create the main FastAPI application."""
    app = create_app()
    app.router.lifespan_context = lifespan
    return app


app = create_main_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dispatch_portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
