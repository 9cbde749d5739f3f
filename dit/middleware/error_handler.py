# dit/middleware/error_handler.py
# Error taxonomy and the single JSON error envelope every endpoint answers with:
#   {"error": {"code", "message", "details"?, "request_id"?}}

import logging
import traceback
import uuid
from typing import Callable, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from dit.utils.logger import log_exception

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "An internal error occurred. Please try again later."


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: Optional[dict] = None,
    request_id: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Create a standardized JSON error response."""
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    if request_id:
        error["request_id"] = request_id
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


class AppError(Exception):
    """Base application error; carries its own HTTP status and error code."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}

    def to_response(self, request_id: Optional[str] = None, headers: Optional[dict] = None) -> JSONResponse:
        return create_error_response(
            error_code=self.error_code,
            message=self.message,
            status_code=self.status_code,
            details=self.details,
            request_id=request_id,
            headers=headers,
        )


class InvalidInput(AppError):
    """Malformed or missing request fields."""
    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Invalid input", details: Optional[dict] = None):
        super().__init__(message, details=details)


class Unauthorized(AppError):
    """Missing, unknown or expired session."""
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidCode(Unauthorized):
    """Access code does not match an active record."""
    error_code = "INVALID_CODE"

    def __init__(self, message: str = "Invalid code"):
        super().__init__(message)


class RateLimited(AppError):
    status_code = 429
    error_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            "Too many requests. Please try again shortly.",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class StoreError(AppError):
    """Relational store operation failed. Detail stays in the server logs."""
    error_code = "STORE_ERROR"

    def __init__(self, message: str = "Store operation failed"):
        super().__init__(message)


class SessionCreateFailed(StoreError):
    """Could not insert a unique session token within the attempt budget."""
    error_code = "SESSION_CREATE_FAILED"

    def __init__(self, attempts: int = 3):
        super().__init__(f"Failed to create session after {attempts} attempts")


class UpstreamError(AppError):
    """Chat webhook answered with a non-2xx status."""
    status_code = 502
    error_code = "UPSTREAM_ERROR"

    def __init__(self, message: str = "Upstream error"):
        super().__init__(message)


class BadGateway(AppError):
    """Chat webhook unreachable (DNS, refused, reset...)."""
    status_code = 502
    error_code = "BAD_GATEWAY"

    def __init__(self, message: str = "Bad gateway"):
        super().__init__(message)


class GatewayTimeout(AppError):
    """Chat webhook did not answer within the relay timeout."""
    status_code = 504
    error_code = "GATEWAY_TIMEOUT"

    def __init__(self, message: str = "Gateway timeout"):
        super().__init__(message)


class ServiceNotConfigured(AppError):
    error_code = "SERVICE_NOT_CONFIGURED"

    def __init__(self, service: str):
        super().__init__(f"{service} service not configured")


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence: anything that escapes the routers and the
    registered handlers becomes a 500 envelope. Tracebacks only reach the
    client in debug mode.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        log_extra = {"request_id": request_id, "path": request.url.path}

        try:
            return await call_next(request)
        except AppError as e:
            logger.warning(f"{e.error_code}: {e.message}", extra=log_extra)
            return e.to_response(request_id=request_id)
        except Exception as e:
            log_exception(e, context=f"Unhandled error on {request.url.path}")
            logger.error(f"Unhandled {type(e).__name__}: {e}", extra=log_extra, exc_info=True)

            details = None
            if self.debug:
                details = {"type": type(e).__name__, "traceback": traceback.format_exc()}
            return create_error_response(
                error_code="INTERNAL_ERROR",
                message=INTERNAL_MESSAGE,
                status_code=500,
                details=details,
                request_id=request_id,
            )


def setup_exception_handlers(app):
    """Register exception handlers on FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Field paths without the leading "body"/"query" segment
        fields = sorted({
            ".".join(str(part) for part in err.get("loc", ())[1:])
            for err in exc.errors()
        } - {""})
        return InvalidInput("Invalid request body", details={"fields": fields} if fields else None).to_response()

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        log_exception(exc, context=f"Store error on {request.url.path}")
        return StoreError().to_response()
