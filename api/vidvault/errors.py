"""Application error taxonomy and the JSON response envelope."""

from typing import Any, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidvault.logging_config import logger, redact_validation_errors


class AppError(Exception):
    """Base class for errors that carry an HTTP status code.

    Services raise the most specific subclass and let it propagate; the
    exception handlers below turn it into an envelope with the same status.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def __repr__(self):
        return f"<{type(self).__name__}(status_code={self.status_code}, message={self.message!r})>"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def envelope(status_code: int, message: str, data: Any = None) -> dict:
    """Build the uniform ``{statusCode, message, data?}`` response body."""
    body = {"statusCode": status_code, "message": message}
    if data is not None:
        body["data"] = data
    return body


def envelope_response(status_code: int, message: str, data: Any = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope(status_code, message, data)),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    """Render an AppError with its own status code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return envelope_response(exc.status_code, exc.message, exc.data, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    errors = redact_validation_errors(exc.errors())
    logger.warning(
        "Validation error",
        path=request.url.path,
        errors=errors,
    )
    return envelope_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return envelope_response(status.HTTP_429_TOO_MANY_REQUESTS, f"Rate limit exceeded: {exc.detail}")


async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True,
    )
    return envelope_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, global_exception_handler)
