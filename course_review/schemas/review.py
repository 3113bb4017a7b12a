"""
API schemas for Review endpoints
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from course_review.models.review import Review, ReviewTag
from course_review.validators.review_validators import ReviewValidatorMixin

# Labels derived server-side; any client copy is discarded before validation
DERIVED_FIELDS = ("difficulty_text", "difficultyText")


def _drop_derived_fields(data):
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if k not in DERIVED_FIELDS}
    return data


class ReviewCreate(ReviewValidatorMixin, BaseModel):
    """Schema for submitting a review; the author comes from the identity context"""
    course_id: str = Field(..., min_length=1)
    rating: float
    difficulty: int
    content: str
    tags: List[ReviewTag] = []
    semester: str
    professor: str

    @model_validator(mode="before")
    @classmethod
    def ignore_difficulty_text(cls, data):
        return _drop_derived_fields(data)


class ReviewUpdate(ReviewValidatorMixin, BaseModel):
    """Schema for editing review fields; identity fields cannot change"""
    rating: Optional[float] = None
    difficulty: Optional[int] = None
    content: Optional[str] = None
    tags: Optional[List[ReviewTag]] = None
    semester: Optional[str] = None
    professor: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def ignore_difficulty_text(cls, data):
        return _drop_derived_fields(data)


class ReviewResponse(Review):
    """Schema for review responses"""
    id: str


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    pagination: Pagination


class UserReviewsDeletedResponse(BaseModel):
    user_id: str
    deleted: int
    course_ids: List[str] = []
    failed: List[str] = []


class HelpfulToggleResponse(BaseModel):
    review_id: str
    helpful: bool
    helpful_count: int
    message: str
