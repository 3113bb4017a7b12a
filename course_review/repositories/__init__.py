"""
Repositories module initialization
"""

from .course import CourseRepository
from .review import ReviewRepository

__all__ = [
    "CourseRepository",
    "ReviewRepository",
]
