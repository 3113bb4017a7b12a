"""
Correlation ID utilities for request tracing
Shared by the HTTP middleware, the logger and the reconciliation script
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable to store correlation ID across async operations
correlation_id_context: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID from the current context"""
    return correlation_id_context.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current context"""
    correlation_id_context.set(correlation_id)


def create_correlation_id() -> str:
    return str(uuid.uuid4())
