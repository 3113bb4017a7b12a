"""
Error handling utilities

Domain errors carry a kind and a message. Only the handlers at the bottom of
this module know how kinds translate into HTTP status codes.
"""

import traceback
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from course_review.core.config import config
from course_review.core.logger import logger


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INCONSISTENCY = "inconsistency"
    STORE_UNAVAILABLE = "store_unavailable"


class ReviewServiceError(Exception):
    """Base class for domain errors raised by the service layer"""

    kind: ErrorKind = ErrorKind.INCONSISTENCY

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ReviewServiceError):
    """A field is malformed or out of range"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        self.field = field
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)


class ConflictError(ReviewServiceError):
    kind = ErrorKind.CONFLICT


class NotFoundError(ReviewServiceError):
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(ReviewServiceError):
    kind = ErrorKind.FORBIDDEN


class InconsistencyError(ReviewServiceError):
    """Course aggregates could not be brought in line with its reviews"""

    kind = ErrorKind.INCONSISTENCY

    def __init__(self, message: str, course_id: Optional[str] = None, details: Optional[dict] = None):
        self.course_id = course_id
        details = dict(details or {})
        if course_id:
            details.setdefault("course_id", course_id)
        super().__init__(message, details)


class StoreUnavailableError(ReviewServiceError):
    """Transient failure talking to MongoDB"""

    kind = ErrorKind.STORE_UNAVAILABLE


class ErrorResponse(Exception):
    """Custom exception for HTTP-level application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    kind: Optional[str] = None
    details: Optional[dict] = None


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INCONSISTENCY: 500,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


def status_code_for(kind: ErrorKind) -> int:
    return STATUS_CODES.get(kind, 500)


def _request_metadata(request: Request) -> dict:
    metadata = {"url": str(request.url), "method": request.method}
    if config.environment == "development":
        metadata["traceback"] = traceback.format_exc()
    return metadata


async def review_service_error_handler(request: Request, exc: ReviewServiceError):
    """Handler for domain errors raised by services and repositories"""
    status_code = status_code_for(exc.kind)
    metadata = {
        "event": "review_service_error",
        "kind": exc.kind.value,
        "status_code": status_code,
        **_request_metadata(request),
        **exc.details,
    }

    if status_code >= 500:
        logger.error(f"Error: {exc.message}", metadata=metadata)
    else:
        logger.warning(f"Request rejected: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "kind": exc.kind.value, "details": exc.details},
    )


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    logger.error(
        f"Error: {exc.message}",
        metadata={
            "event": "error_response",
            "status_code": exc.status_code,
            **_request_metadata(request),
            **exc.details,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.error(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are reported as validation failures naming each field"""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc), "message": err.get("msg")})

    logger.warning(
        "Request validation failed",
        metadata={"event": "request_validation_error", "fields": fields, "url": str(request.url)},
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "kind": ErrorKind.VALIDATION.value,
            "details": {"fields": fields},
        },
    )
