"""
API module initialization
"""

from . import admin, courses, health, reviews

__all__ = ["admin", "courses", "health", "reviews"]
