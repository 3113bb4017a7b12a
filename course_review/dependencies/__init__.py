"""
Dependencies module initialization
"""

from .auth import get_current_user, require_admin, require_moderator
from .services import (
    get_aggregate_recalculator,
    get_course_service,
    get_database,
    get_review_service,
)

__all__ = [
    "get_current_user",
    "require_admin",
    "require_moderator",
    "get_aggregate_recalculator",
    "get_course_service",
    "get_database",
    "get_review_service",
]
