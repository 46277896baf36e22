"""
FastAPI application factory.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dispatch_portal.api.middleware.error_handler import ErrorHandlerMiddleware
from dispatch_portal.api.middleware.logging import LoggingMiddleware
from dispatch_portal.api.routes import branches, health, requests
from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Service request lifecycle and dispatch engine",
        openapi_url=f"{settings.API_PREFIX}/openapi.json" if settings.ENABLE_SWAGGER else None,
        docs_url=f"{settings.API_PREFIX}/docs" if settings.ENABLE_SWAGGER else None,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    ErrorHandlerMiddleware(app)
    LoggingMiddleware(app)

    app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
    app.include_router(requests.router, prefix=settings.API_PREFIX, tags=["requests"])
    app.include_router(branches.router, prefix=settings.API_PREFIX, tags=["branches"])

    logger.info(
        "Application created",
        environment=settings.ENVIRONMENT,
        storage_backend=settings.STORAGE_BACKEND,
    )
    return app
