"""Error taxonomy and the handlers that turn errors into JSON.

Every failure the API reports is a JSON object with a ``message`` field.
Services raise the ProfileHubError subclasses below; the handlers
registered by register_exception_handlers() translate them (plus FastAPI's
own HTTP and request-validation errors) at the boundary.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


class ProfileHubError(Exception):
    """Base class — carries the HTTP status and client-facing message."""

    status_code: int = 500
    message: str = "Internal server error"
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ProfileHubError):
    """Missing or malformed input fields."""

    status_code = 400
    message = "All fields required"


class DuplicateIdentityError(ProfileHubError):
    """An identity with this email already exists."""

    status_code = 409
    message = "Email already registered"


class InvalidCredentialsError(ProfileHubError):
    """Unknown email or wrong password; both produce the same response."""

    status_code = 401
    message = "Invalid email or password"


class UnauthenticatedError(ProfileHubError):
    """No bearer token on a request that needs one."""

    status_code = 401
    message = "Unauthorized"
    headers = _BEARER_CHALLENGE


class InvalidTokenError(ProfileHubError):
    """Bearer token present but tampered, malformed or expired."""

    status_code = 401
    message = "Invalid token"
    headers = _BEARER_CHALLENGE


class NotFoundError(ProfileHubError):
    status_code = 404
    message = "User not found"


class StorageError(ProfileHubError):
    """Unexpected persistence failure."""

    status_code = 500
    message = "Database error"


class ImageIOError(ProfileHubError):
    """Writing or removing an image file failed."""

    status_code = 500
    message = "Could not store image"


def _message_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message},
        headers=headers,
    )


async def _profilehub_error_handler(request: Request, exc: ProfileHubError):
    return _message_response(exc.status_code, exc.message, exc.headers)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _message_response(exc.status_code, message, getattr(exc, "headers", None))


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(
        "request.validation_failed",
        path=request.url.path,
        fields=[".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()],
    )
    return _message_response(ValidationError.status_code, ValidationError.message)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON ``{"message": ...}`` handlers to an app."""
    app.add_exception_handler(ProfileHubError, _profilehub_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
