"""Shared test fixtures"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from course_review.models.user import Role, User
from course_review.services.aggregate_recalculator import AggregateRecalculator
from course_review.services.review import ReviewService
from fixtures.in_memory import (
    InMemoryCourseRepository,
    InMemoryDatabase,
    InMemoryReviewRepository,
    InMemoryStore,
)


@pytest.fixture
def mock_collection():
    """Mock MongoDB collection for testing"""
    return AsyncMock()


@pytest.fixture
def course_id():
    """Sample course ID for testing"""
    return "507f1f77bcf86cd799439011"


@pytest.fixture
def review_id():
    """Sample review ID for testing"""
    return "507f1f77bcf86cd799439022"


@pytest.fixture
def mock_review_doc(course_id, review_id):
    """Review document as MongoDB returns it"""
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(review_id),
        "course_id": ObjectId(course_id),
        "user_id": "user-b",
        "rating": 5.0,
        "difficulty": 4,
        "difficulty_text": "Moderate",
        "content": "Challenging but rewarding course",
        "tags": ["Heavy Workload"],
        "helpful_users": [],
        "helpful_count": 0,
        "semester": "Fall 2024",
        "professor": "Dr. Smith",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def mock_course_doc(course_id):
    """Course document as MongoDB returns it"""
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(course_id),
        "prefix": "CS",
        "course_code": "101",
        "full_code": "CS 101",
        "name": "Introduction to Computer Science",
        "description": "Fundamentals of programming",
        "credits": "4",
        "average_rating": 4.5,
        "average_difficulty": 3.0,
        "review_count": 2,
        "review_revision": 2,
        "aggregates_revision": 2,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def user_a():
    return User(id="user-a", roles=[Role.STUDENT])


@pytest.fixture
def user_b():
    return User(id="user-b", roles=[Role.STUDENT])


@pytest.fixture
def user_c():
    return User(id="user-c", roles=[Role.STUDENT])


@pytest.fixture
def moderator():
    return User(id="moderator-1", roles=[Role.MODERATOR])


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def review_repository(store):
    return InMemoryReviewRepository(store)


@pytest.fixture
def course_repository(store):
    return InMemoryCourseRepository(store)


@pytest.fixture
def recalculator(review_repository, course_repository):
    return AggregateRecalculator(
        review_repository, course_repository, max_attempts=50, backoff_base_ms=0, backoff_max_ms=0
    )


@pytest.fixture
def review_service(review_repository, course_repository, recalculator):
    return ReviewService(InMemoryDatabase(), review_repository, course_repository, recalculator)
