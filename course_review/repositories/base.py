"""
Helpers shared by the MongoDB repositories
"""

from contextlib import contextmanager
from typing import Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from course_review.core.errors import StoreUnavailableError, ValidationError
from course_review.core.logger import logger


def to_object_id(value: str, field: str) -> ObjectId:
    """Convert a string id, rejecting malformed values"""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {field} format", field=field)
    return ObjectId(value)


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    page = max(page, 1)
    limit = max(limit, 1)
    return (page - 1) * limit, limit


@contextmanager
def store_errors(operation: str, session=None):
    """
    Translate driver failures into StoreUnavailableError.

    Inside a live transaction the driver error is re-raised untouched so that
    with_transaction can inspect its labels and retry. Duplicate key errors
    are always left to the caller.
    """
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        if session is not None and getattr(session, "in_transaction", False):
            raise
        logger.error(
            f"MongoDB error during {operation}: {e}",
            error=e,
            metadata={"event": "store_error", "operation": operation},
        )
        raise StoreUnavailableError(f"Database error during {operation}") from e


def stringify_id(doc: Optional[dict], *reference_fields: str) -> Optional[dict]:
    """Replace _id with a string id and stringify ObjectId references"""
    if not doc:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    for field in reference_fields:
        if field in doc and doc[field] is not None:
            doc[field] = str(doc[field])
    return doc
