"""
Services module initialization
"""

from .aggregate_recalculator import (
    AggregateRecalculator,
    RecalculationResult,
    compute_course_aggregates,
)
from .course import CourseService
from .review import ReviewService

__all__ = [
    "AggregateRecalculator",
    "RecalculationResult",
    "compute_course_aggregates",
    "CourseService",
    "ReviewService",
]
