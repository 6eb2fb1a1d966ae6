"""
Application errors and their JSON envelope rendering.

Services raise AppError subclasses; the handlers registered here turn them
(and request validation errors / unexpected exceptions) into
{"success": false, "message": ..., "error": ...} responses.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error with an HTTP status and a client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class DuplicateEmailError(ValidationFailed):
    message = "Email already registered"


class InvalidResetToken(ValidationFailed):
    message = "Invalid or expired token"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Please authenticate"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not authorized to perform this action"


class RateLimitExceeded(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str], limit: int, retry_after: int):
        self.limit = limit
        self.retry_after = max(retry_after, 0)
        super().__init__(
            message,
            headers={
                "Retry-After": str(self.retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )


def error_body(message: str, error: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in exc.errors():
        # Drop the "body"/"query" location prefix
        loc = [str(part) for part in err.get("loc", ())[1:]]
        ctx = err.get("ctx") or {}
        # Custom validators raise ValueError; show their text without pydantic's prefix
        message = str(ctx["error"]) if "error" in ctx else err.get("msg", "Invalid value")
        errors.append({"field": ".".join(loc), "message": message})
    return errors


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} at {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message),
        headers=exc.headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = _field_errors(exc)
    message = errors[0]["message"] if errors else ValidationFailed.message
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error at {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal Server Error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
