"""Tests for CourseService"""
from unittest.mock import AsyncMock

import pytest

from course_review.core.errors import ConflictError, NotFoundError
from course_review.repositories.course import CourseRepository
from course_review.schemas.course import CourseCreate, CourseResponse
from course_review.services.course import CourseService


class TestCourseService:
    """Test cases for CourseService class"""

    @pytest.fixture
    def mock_repository(self):
        return AsyncMock(spec=CourseRepository)

    @pytest.fixture
    def service(self, mock_repository):
        return CourseService(mock_repository)

    @pytest.fixture
    def course_create(self):
        return CourseCreate(
            prefix=" CS ",
            course_code="101",
            name="Introduction to Computer Science",
            description="Fundamentals of programming",
            credits="4",
        )

    def test_full_code_derived(self, course_create):
        assert course_create.prefix == "CS"
        assert course_create.full_code == "CS 101"

    @pytest.mark.asyncio
    async def test_create_course(self, service, mock_repository, course_create, mock_course_doc, course_id):
        mock_repository.full_code_exists.return_value = False
        doc = dict(mock_course_doc, id=course_id)
        doc.pop("_id")
        mock_repository.create.return_value = CourseResponse(**doc)

        course = await service.create_course(course_create)

        assert course.id == course_id
        mock_repository.create.assert_awaited_once_with(course_create)

    @pytest.mark.asyncio
    async def test_create_duplicate_course(self, service, mock_repository, course_create):
        mock_repository.full_code_exists.return_value = True

        with pytest.raises(ConflictError):
            await service.create_course(course_create)
        mock_repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_missing_course(self, service, mock_repository, course_id):
        mock_repository.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_course(course_id)

    @pytest.mark.asyncio
    async def test_get_stale_course_reports_staleness(self, service, mock_repository, mock_course_doc, course_id):
        doc = dict(mock_course_doc, id=course_id, review_revision=3, aggregates_revision=2)
        doc.pop("_id")
        mock_repository.get_by_id.return_value = CourseResponse(**doc)

        course = await service.get_course(course_id)

        assert course.is_stale
        assert course.model_dump()["is_stale"] is True

    @pytest.mark.asyncio
    async def test_list_courses_pagination(self, service, mock_repository):
        mock_repository.list_courses.return_value = ([], 21)

        result = await service.list_courses(prefix="CS", page=3, limit=10)

        assert result.pagination.pages == 3
        mock_repository.list_courses.assert_awaited_once_with(prefix="CS", search=None, page=3, limit=10)
