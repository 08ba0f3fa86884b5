"""
Error handling for the home value service.

Every failure leaves the API as
``{"error": {"category", "message", "timestamp", "path", ...details}}``
so clients get a machine-readable reason next to the human-readable text.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorCategory:
    """Error categories for structured error handling"""
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    INVALID_TOKEN = "invalid_token"
    FORBIDDEN = "forbidden"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    ALREADY_ASSIGNED = "already_assigned"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    STORAGE = "storage_error"
    DATABASE = "database_error"
    INTERNAL = "internal_error"


class AppError(Exception):
    """Base application error with structured information"""

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[dict] = None,
        headers: Optional[dict] = None,
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)


class ValidationError(AppError):
    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details=details,
        )


class AuthenticationRequired(AppError):
    def __init__(self):
        super().__init__(
            message="Authentication required",
            category=ErrorCategory.AUTHENTICATION,
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidToken(AppError):
    def __init__(self):
        super().__init__(
            message="Invalid or expired token",
            category=ErrorCategory.INVALID_TOKEN,
            status_code=403,
        )


class Forbidden(AppError):
    """The actor's role does not allow the operation at all."""
    def __init__(self, message: str = "Access restricted to experts only"):
        super().__init__(
            message=message, category=ErrorCategory.FORBIDDEN, status_code=403
        )


class AccessDenied(AppError):
    """The actor is not related to the request in a way that allows the operation."""
    def __init__(self, message: str, reason: str):
        super().__init__(
            message=message,
            category=ErrorCategory.ACCESS_DENIED,
            status_code=403,
            details={"reason": reason},
        )


class NotFound(AppError):
    def __init__(self, message: str = "Home value request not found"):
        super().__init__(
            message=message, category=ErrorCategory.NOT_FOUND, status_code=404
        )


class AlreadyAssigned(AppError):
    def __init__(self, message: str = "Request already assigned"):
        super().__init__(
            message=message, category=ErrorCategory.ALREADY_ASSIGNED, status_code=409
        )


class FileTooLarge(AppError):
    def __init__(self, filename: str, max_bytes: int):
        super().__init__(
            message=f"{filename} exceeds the maximum size of {max_bytes} bytes",
            category=ErrorCategory.FILE_TOO_LARGE,
            status_code=413,
            details={"filename": filename, "max_bytes": max_bytes},
        )


class UnsupportedMediaType(AppError):
    def __init__(self, content_type: Optional[str]):
        super().__init__(
            message="Only image files are allowed",
            category=ErrorCategory.UNSUPPORTED_MEDIA_TYPE,
            status_code=415,
            details={"content_type": content_type},
        )


class StorageError(AppError):
    """Blob backend failure."""
    def __init__(self, message: str = "Image storage failed", backend: Optional[str] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            status_code=502,
            details={"backend": backend} if backend else {},
        )


class DataStoreError(AppError):
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(
            message=message, category=ErrorCategory.DATABASE, status_code=500
        )


def _error_body(request: Request, category: str, message: str, **extra) -> dict:
    return {
        "error": {
            "category": category,
            "message": message,
            "timestamp": datetime.utcnow().isoformat(),
            "path": request.url.path,
            **extra,
        }
    }


def handle_app_error(error: AppError, request: Request) -> JSONResponse:
    """Handle structured application errors"""
    log = logger.error if error.status_code >= 500 else logger.info
    log(
        f"Application error: {error.category}",
        extra={
            "category": error.category,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": error.details,
        },
    )
    return JSONResponse(
        status_code=error.status_code,
        content=_error_body(request, error.category, error.message, **error.details),
        headers=error.headers,
    )


def handle_validation_error(error: RequestValidationError, request: Request) -> JSONResponse:
    """Handle FastAPI validation errors"""
    errors = []
    for err in error.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        })

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body(
            request,
            ErrorCategory.VALIDATION,
            "Request validation failed",
            validation_errors=errors,
        ),
    )


def handle_database_error(error: SQLAlchemyError, request: Request) -> JSONResponse:
    """Handle database errors that escaped the CRUD layer."""
    is_connection_error = isinstance(error, OperationalError)
    logger.error(
        f"Database error: {type(error).__name__}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=error,
    )
    return JSONResponse(
        status_code=503 if is_connection_error else 500,
        content=_error_body(
            request,
            ErrorCategory.DATABASE,
            "Database operation failed. Please try again.",
        ),
    )


# Exception handlers for FastAPI
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return handle_app_error(exc, request)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return handle_validation_error(exc, request)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    return handle_database_error(exc, request)
