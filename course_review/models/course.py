"""
Course model with the derived review aggregates
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from course_review.models.review import utc_now


class CourseAggregates(BaseModel):
    """Derived review statistics; written only by the aggregate recalculator"""
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    average_difficulty: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)


class CourseBase(BaseModel):
    """Descriptive course fields"""
    prefix: str
    course_code: str
    full_code: str
    name: str
    description: str
    prerequisites: str = ""
    credits: str
    department: Optional[str] = None
    area: Optional[str] = None
    foundation: Optional[str] = None
    attributes: Optional[str] = None
    notes: str = ""
    connection: str = ""
    compass: str = ""


class Course(CourseBase, CourseAggregates):
    """Course document as stored in the courses collection"""
    review_revision: int = Field(default=0, ge=0)
    aggregates_revision: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    id: Optional[str] = None

    @computed_field
    @property
    def is_stale(self) -> bool:
        """Aggregates lag behind the reviews until the next recalculation"""
        return self.aggregates_revision != self.review_revision
