"""
Database module initialization
"""

from .indexes import create_indexes
from .mongodb import COURSES_COLLECTION, REVIEWS_COLLECTION, Database

__all__ = [
    "COURSES_COLLECTION",
    "REVIEWS_COLLECTION",
    "Database",
    "create_indexes",
]
