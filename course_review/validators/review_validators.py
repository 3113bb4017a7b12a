from typing import Type, TypeVar

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

from course_review.core.errors import ValidationError
from course_review.models.review import MAX_DIFFICULTY, MIN_DIFFICULTY

MIN_RATING = 1
MAX_RATING = 5
MIN_CONTENT_LENGTH = 10

ModelT = TypeVar("ModelT", bound=BaseModel)


def check_rating(v):
    if v is None:
        return v
    if v < MIN_RATING or v > MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    if not float(v * 2).is_integer():
        raise ValueError(f"{v} is not a valid rating. Ratings must be in 0.5 increments")
    return float(v)


def check_difficulty(v):
    if v is not None and (v < MIN_DIFFICULTY or v > MAX_DIFFICULTY):
        raise ValueError(f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}")
    return v


def check_content(v):
    if v is not None and len(v.strip()) < MIN_CONTENT_LENGTH:
        raise ValueError(f"Review content must be at least {MIN_CONTENT_LENGTH} characters long")
    return v


def check_required_text(v, label: str):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


def check_unique_tags(v):
    if v is None:
        return v
    # Tags behave as a set; keep first-seen order
    seen = []
    for tag in v:
        if tag not in seen:
            seen.append(tag)
    return seen


class ReviewValidatorMixin:
    @field_validator("rating")
    @classmethod
    def rating_valid(cls, v):
        return check_rating(v)

    @field_validator("difficulty")
    @classmethod
    def difficulty_valid(cls, v):
        return check_difficulty(v)

    @field_validator("content")
    @classmethod
    def content_valid(cls, v):
        return check_content(v)

    @field_validator("semester")
    @classmethod
    def semester_required(cls, v):
        return check_required_text(v, "Semester")

    @field_validator("professor")
    @classmethod
    def professor_required(cls, v):
        return check_required_text(v, "Professor name")

    @field_validator("tags")
    @classmethod
    def tags_unique(cls, v):
        return check_unique_tags(v)


def validate_model(model: Type[ModelT], data: dict) -> ModelT:
    """
    Build a model, reporting the first failing field as a domain ValidationError.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "Invalid value")
        raise ValidationError(
            f"Invalid value for '{field}': {message}" if field else message,
            field=field,
            details={"errors": [
                {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
                for err in e.errors()
            ]},
        ) from e
