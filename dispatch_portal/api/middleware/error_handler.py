"""
Error handling middleware.
"""

import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from dispatch_portal.config.logging import get_logger
from dispatch_portal.domain.exceptions.dispatch_error import (
    BranchMismatchError,
    ConfirmationRequiredError,
    ConflictError,
    DispatchError,
    DuplicateRequestNumberError,
    InvalidTransitionError,
    NotFoundError,
    SlaExpiredError,
)
from dispatch_portal.domain.exceptions.validation_error import ValidationError
from dispatch_portal.infrastructure.monitoring.metrics import record_api_error

logger = get_logger(__name__)


def _error_response(
    status_code: int,
    error: str,
    message: str,
    error_type: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    record_api_error(error_type, status_code)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "type": error_type,
            "details": details or {},
        },
    )


class ErrorHandlerMiddleware:
    """Error handling middleware for FastAPI."""

    def __init__(self, app: FastAPI):
        self.app = app
        self.add_error_handlers()

    def add_error_handlers(self) -> None:
        """Add custom error handlers to FastAPI app."""
        add_error_handlers(self.app)


def add_error_handlers(app: FastAPI) -> None:
    """Add custom error handlers to FastAPI app."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning("Validation error", error=str(exc), path=request.url.path)
        details = {"field": exc.field_name} if hasattr(exc, "field_name") else None
        return _error_response(400, "Validation Error", str(exc), "validation_error", details)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning("Entity not found", error=str(exc), path=request.url.path)
        return _error_response(
            404,
            "Not Found",
            str(exc),
            "not_found",
            {"entity": exc.entity, "id": exc.entity_id},
        )

    @app.exception_handler(SlaExpiredError)
    async def sla_expired_handler(request: Request, exc: SlaExpiredError):
        logger.warning("SLA expired", error=str(exc), path=request.url.path)
        return _error_response(
            409,
            "SLA Expired",
            str(exc),
            "sla_expired",
            {
                "current_status": exc.current_status,
                "trigger": exc.trigger,
                "deadline": exc.deadline.isoformat(),
            },
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        logger.warning("Invalid transition", error=str(exc), path=request.url.path)
        return _error_response(
            409,
            "Invalid Transition",
            str(exc),
            "invalid_transition",
            {"current_status": exc.current_status, "trigger": exc.trigger},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        logger.warning("Concurrent modification", error=str(exc), path=request.url.path)
        return _error_response(
            409,
            "Conflict",
            str(exc),
            "conflict",
            {"request_id": exc.request_id, "expected_version": exc.expected_version},
        )

    @app.exception_handler(BranchMismatchError)
    async def branch_mismatch_handler(request: Request, exc: BranchMismatchError):
        logger.warning("Branch mismatch", error=str(exc), path=request.url.path)
        return _error_response(
            422,
            "Branch Mismatch",
            str(exc),
            "branch_mismatch",
            {
                "branch_id": exc.branch_id,
                "partner_id": exc.partner_id,
                "owner_partner_id": exc.owner_partner_id,
            },
        )

    @app.exception_handler(ConfirmationRequiredError)
    async def confirmation_required_handler(
        request: Request, exc: ConfirmationRequiredError
    ):
        logger.warning("Customer confirmation missing", error=str(exc), path=request.url.path)
        return _error_response(
            428,
            "Confirmation Required",
            str(exc),
            "confirmation_required",
            {"request_id": exc.request_id},
        )

    @app.exception_handler(DuplicateRequestNumberError)
    async def duplicate_request_number_handler(
        request: Request, exc: DuplicateRequestNumberError
    ):
        logger.warning("Request number collision", error=str(exc), path=request.url.path)
        return _error_response(
            409,
            "Duplicate Request Number",
            str(exc),
            "duplicate_request_number",
            {"request_number": exc.request_number},
        )

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError):
        logger.warning("Dispatch error", error=str(exc), path=request.url.path)
        return _error_response(422, "Dispatch Error", str(exc), "dispatch_error")

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error", error=str(exc), path=request.url.path)
        return _error_response(
            500, "Database Error", "A database error occurred", "database_error"
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTP Error",
                "message": exc.detail,
                "type": "http_error",
                "details": {},
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
            traceback=traceback.format_exc(),
        )
        return _error_response(
            500, "Internal Server Error", "An unexpected error occurred", "internal_error"
        )
