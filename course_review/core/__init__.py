"""
Core module initialization
"""

from .config import config
from .errors import (
    ConflictError,
    ErrorKind,
    ErrorResponse,
    ErrorResponseModel,
    InconsistencyError,
    NotFoundError,
    PermissionDeniedError,
    ReviewServiceError,
    StoreUnavailableError,
    ValidationError,
)
from .logger import logger

__all__ = [
    "config",
    "ConflictError",
    "ErrorKind",
    "ErrorResponse",
    "ErrorResponseModel",
    "InconsistencyError",
    "NotFoundError",
    "PermissionDeniedError",
    "ReviewServiceError",
    "StoreUnavailableError",
    "ValidationError",
    "logger",
]
