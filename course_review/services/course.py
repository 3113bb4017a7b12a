"""
Course service: catalogue reads and course creation
"""

import math
from typing import Optional

from course_review.core.errors import ConflictError, NotFoundError
from course_review.core.logger import logger
from course_review.repositories.course import CourseRepository
from course_review.schemas.course import CourseCreate, CourseListResponse, CourseResponse
from course_review.schemas.review import Pagination


class CourseService:
    """Service layer for course business logic"""

    def __init__(self, repository: CourseRepository):
        self.repository = repository

    async def create_course(self, course_data: CourseCreate) -> CourseResponse:
        """Create a new course; full codes are unique"""
        if await self.repository.full_code_exists(course_data.full_code):
            raise ConflictError(
                "Course with this code already exists",
                details={"full_code": course_data.full_code},
            )

        course = await self.repository.create(course_data)

        logger.info(
            f"Created course {course.full_code}",
            metadata={"event": "create_course", "course_id": course.id},
        )
        return course

    async def get_course(self, course_id: str) -> CourseResponse:
        """Get course by ID"""
        course = await self.repository.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found", details={"course_id": course_id})
        if course.is_stale:
            logger.warning(
                f"Serving stale review statistics for course {course_id}",
                metadata={
                    "event": "stale_course_aggregates",
                    "course_id": course_id,
                    "reviewRevision": course.review_revision,
                    "aggregatesRevision": course.aggregates_revision,
                },
            )
        return course

    async def list_courses(
        self,
        prefix: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> CourseListResponse:
        courses, total = await self.repository.list_courses(
            prefix=prefix, search=search, page=page, limit=limit
        )
        return CourseListResponse(
            courses=courses,
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                pages=math.ceil(total / limit) if limit else 0,
            ),
        )
