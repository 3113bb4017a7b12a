"""
Models module initialization
"""

from .course import Course, CourseAggregates, CourseBase
from .review import DifficultyText, Review, ReviewTag, difficulty_text_for
from .user import Role, User

__all__ = [
    "Course",
    "CourseAggregates",
    "CourseBase",
    "DifficultyText",
    "Review",
    "ReviewTag",
    "difficulty_text_for",
    "Role",
    "User",
]
