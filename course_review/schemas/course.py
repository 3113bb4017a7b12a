"""
API schemas for Course endpoints
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from course_review.models.course import Course, CourseAggregates
from course_review.schemas.review import Pagination


class CourseCreate(BaseModel):
    """Schema for creating a course; aggregates always start at zero"""
    prefix: str = Field(..., min_length=1, max_length=20)
    course_code: str = Field(..., min_length=1, max_length=20)
    full_code: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    prerequisites: str = ""
    credits: str = Field(..., min_length=1)
    department: Optional[str] = None
    area: Optional[str] = None
    foundation: Optional[str] = None
    attributes: Optional[str] = None
    notes: str = ""
    connection: str = ""
    compass: str = ""

    @model_validator(mode="after")
    def derive_full_code(self):
        self.prefix = self.prefix.strip()
        self.course_code = self.course_code.strip()
        self.name = self.name.strip()
        if not self.full_code or not self.full_code.strip():
            self.full_code = f"{self.prefix} {self.course_code}"
        else:
            self.full_code = self.full_code.strip()
        return self


class CourseResponse(Course):
    """Schema for course responses including aggregate fields"""
    id: str


class CourseListResponse(BaseModel):
    courses: List[CourseResponse]
    pagination: Pagination


class ReconcileResponse(BaseModel):
    course_id: str
    aggregates: CourseAggregates
    revision: int


class ReconcileSweepResponse(BaseModel):
    reconciled: List[ReconcileResponse]
    failed: List[str] = []
