"""
Global exception handling for the application.
Every failure is rendered as {"success": false, "message": ...} with a non-2xx status.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input. `details["errors"]` holds field-level violations."""
    def __init__(
        self,
        message: str = "Validation error",
        errors: Optional[List[Dict[str, str]]] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        super().__init__(message, status_code, {"errors": errors} if errors else None)

    @property
    def errors(self) -> List[Dict[str, str]]:
        return self.details.get("errors", [])


class ConflictError(ValidationError):
    """Unique field already taken."""
    def __init__(self, message: str = "Already exists", errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message, errors, status.HTTP_409_CONFLICT)


class AuthError(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenError(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class JobStateError(AppError):
    """Illegal review job status transition."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class HashingError(AppError):
    """Password hashing failed."""
    def __init__(self, message: str = "Password hashing failed"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ReviewGenerationError(AppError):
    """The language model returned something that is not a usable review."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class RemoteError(AppError):
    """Non-2xx answer (or no answer) from a downstream HTTP call."""
    def __init__(self, message: str, status_code: int = status.HTTP_502_BAD_GATEWAY, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code, details)


class PollingTimeoutError(AppError):
    """Client-side polling ran out of time. The job itself may still finish."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_504_GATEWAY_TIMEOUT, details)


def error_body(request: Request, message: str, code: str, errors: Optional[list] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "code": code,
        "path": request.url.path,
    }
    if errors:
        body["errors"] = errors
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Application error", error=exc.message, code=exc.__class__.__name__, path=request.url.path)
    errors = exc.details.get("errors")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.message, exc.__class__.__name__, errors),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, "Validation error", "ValidationError", errors),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, str(exc.detail), "HTTPException"),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    logger.exception("Unexpected error occurred", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request,
            "An unexpected error occurred. Please try again later.",
            "InternalServerError",
        ),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
