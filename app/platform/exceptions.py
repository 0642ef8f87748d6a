"""
Exception hierarchy for the Hiddo API.

Hierarchy:
    HiddoException (base)
    ├── ValidationError - malformed input, rejected before any mutation
    ├── InvalidOrExpiredToken - unknown, expired or mismatched verification code
    ├── PendingUserNotFound - verified code without a pending signup
    ├── InvalidSession - any verification session/state mismatch
    ├── UsernameTaken - username already used by another account
    ├── RateLimitExceeded - signup/verify throttling and lockout
    ├── AuthenticationError - missing or invalid bearer token
    ├── PermissionDeniedError - acting on somebody else's resource
    ├── NotFoundError - resource not found
    ├── ConflictError - duplicate like/save/follow
    └── InternalError - unexpected store failure
"""
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)


class HiddoException(Exception):
    """Base exception for all Hiddo errors."""

    default_message = "An error occurred"
    default_code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        data = {"error": self.code}
        if self.details:
            data.update(self.details)
        return data


class ValidationError(HiddoException):
    default_message = "Invalid data provided"
    default_code = "validation_error"


class InvalidOrExpiredToken(HiddoException):
    default_message = "Invalid or expired verification token"
    default_code = "invalid_or_expired_token"


class PendingUserNotFound(HiddoException):
    default_message = "Pending user not found"
    default_code = "pending_user_not_found"


class InvalidSession(HiddoException):
    # every session failure looks the same to the caller
    default_message = "Invalid session"
    default_code = "invalid_session"


class UsernameTaken(HiddoException):
    default_message = "Username is already taken"
    default_code = "username_taken"


class RateLimitExceeded(HiddoException):
    default_message = "Too many attempts. Please try again later."
    default_code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int, locked: bool = False, message=None):
        self.retry_after = max(int(retry_after), 1)
        self.locked = locked
        super().__init__(
            message=message,
            details={"retryAfter": self.retry_after, "locked": locked},
        )


class AuthenticationError(HiddoException):
    default_message = "Invalid authentication credentials"
    default_code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(HiddoException):
    default_message = "Permission denied"
    default_code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(HiddoException):
    default_message = "Resource not found"
    default_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(HiddoException):
    default_message = "Resource already exists"
    default_code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InternalError(HiddoException):
    default_message = "Something went wrong. Please try again."
    default_code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def add_exception_handlers(app):
    @app.exception_handler(HiddoException)
    async def hiddo_exception_handler(request: Request, exc: HiddoException):
        response = api_response(
            message=exc.message,
            status_code=exc.status_code,
            data=exc.to_dict(),
        )
        if isinstance(exc, RateLimitExceeded):
            response.headers["Retry-After"] = str(exc.retry_after)
        if isinstance(exc, AuthenticationError):
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(
            message=str(exc.detail) or "Error",
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Invalid data provided",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
