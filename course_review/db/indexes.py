"""
Database index management for MongoDB.

Indexes are created at application startup. The reviews unique index is what
enforces one review per user per course under concurrent submissions.
"""

from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import PyMongoError

from course_review.core.logger import logger
from course_review.db.mongodb import Database


async def create_indexes(database: Database) -> None:
    """
    Create all required MongoDB indexes for the reviews and courses collections.

    Args:
        database: Connected Database instance
    """
    reviews = database.reviews
    courses = database.courses

    try:
        await reviews.create_index(
            [("user_id", ASCENDING), ("course_id", ASCENDING)],
            unique=True,
            name="idx_user_course_unique",
        )
        logger.info("Created unique index on 'user_id', 'course_id'")

        await reviews.create_index(
            [("course_id", ASCENDING), ("created_at", DESCENDING)],
            name="idx_course_created",
        )
        await reviews.create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
            name="idx_user_created",
        )
        logger.info("Created listing indexes on reviews")

        await courses.create_index(
            [("full_code", ASCENDING)],
            unique=True,
            name="idx_full_code_unique",
        )
        await courses.create_index(
            [("prefix", ASCENDING), ("course_code", ASCENDING)],
            name="idx_prefix_code",
        )
        await courses.create_index(
            [("name", TEXT), ("full_code", TEXT), ("description", TEXT)],
            name="idx_course_text",
        )
        logger.info("Created indexes on courses")

    except PyMongoError as e:
        logger.error(
            f"Failed to create indexes: {e}",
            error=e,
            metadata={"event": "index_creation_failed"},
        )
        raise
