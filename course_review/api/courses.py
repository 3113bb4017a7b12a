"""
Course API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from course_review.core.errors import ErrorResponseModel
from course_review.dependencies.auth import require_admin
from course_review.dependencies.services import get_course_service
from course_review.models.user import User
from course_review.schemas.course import CourseCreate, CourseListResponse, CourseResponse
from course_review.services.course import CourseService

router = APIRouter()


@router.get("", response_model=CourseListResponse)
async def list_courses(
    prefix: Optional[str] = Query(None, description="Filter by course prefix (e.g. CS)"),
    search: Optional[str] = Query(None, description="Whole-word match on course code or name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: CourseService = Depends(get_course_service),
):
    """
    List courses ordered by prefix and course code.
    """
    return await service.list_courses(prefix=prefix, search=search, page=page, limit=limit)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    responses={400: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def get_course(
    course_id: str,
    service: CourseService = Depends(get_course_service),
):
    """
    Get a course with its review statistics.
    """
    return await service.get_course(course_id)


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponseModel}, 409: {"model": ErrorResponseModel}},
)
async def create_course(
    course: CourseCreate,
    user: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    """
    Create a course (admin only).
    """
    return await service.create_course(course)
