"""
Schemas module initialization
"""

from .course import (
    CourseCreate,
    CourseListResponse,
    CourseResponse,
    ReconcileResponse,
    ReconcileSweepResponse,
)
from .review import (
    HelpfulToggleResponse,
    Pagination,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    UserReviewsDeletedResponse,
)

__all__ = [
    "CourseCreate",
    "CourseListResponse",
    "CourseResponse",
    "ReconcileResponse",
    "ReconcileSweepResponse",
    "HelpfulToggleResponse",
    "Pagination",
    "ReviewCreate",
    "ReviewListResponse",
    "ReviewResponse",
    "ReviewUpdate",
    "UserReviewsDeletedResponse",
]
