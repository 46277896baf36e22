"""
Request/Response logging middleware.
"""

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response

from dispatch_portal.config.logging import get_logger

logger = get_logger(__name__)


class LoggingMiddleware:
    """Request/Response logging middleware for FastAPI."""

    def __init__(self, app: FastAPI):
        self.app = app
        self.add_logging_middleware()

    def add_logging_middleware(self) -> None:
        """Add request/response logging middleware."""

        @self.app.middleware("http")
        async def logging_middleware(request: Request, call_next: Callable) -> Response:
            request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
            start_time = time.perf_counter()

            logger.info(
                "Request started",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                actor_id=request.headers.get("x-actor-id"),
                actor_role=request.headers.get("x-actor-role"),
            )

            request.state.request_id = request_id

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "Request failed",
                    request_id=request_id,
                    method=request.method,
                    path=request.url.path,
                    error=str(e),
                    process_time=f"{time.perf_counter() - start_time:.4f}s",
                )
                raise

            process_time = time.perf_counter() - start_time
            logger.info(
                "Request completed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                process_time=f"{process_time:.4f}s",
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"
            return response
