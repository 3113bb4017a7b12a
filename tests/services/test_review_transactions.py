"""Review commands on a deployment with multi-document transactions"""
from unittest.mock import AsyncMock

import pytest

from course_review.core.errors import InconsistencyError, NotFoundError
from course_review.schemas.review import ReviewUpdate
from course_review.services.review import ReviewService
from fixtures.in_memory import InMemorySession, InMemoryTransactionalDatabase
from fixtures.payloads import make_payload


@pytest.fixture
def database(store):
    return InMemoryTransactionalDatabase(store)


@pytest.fixture
def transactional_service(database, review_repository, course_repository, recalculator):
    return ReviewService(database, review_repository, course_repository, recalculator)


def calls_in(store, session):
    """Operations of the command, asserting each ran on the given session"""
    operations = [operation for operation, _ in store.session_calls]
    assert all(call_session is session for _, call_session in store.session_calls), store.session_calls
    return operations


class TestTransactionalCommands:
    @pytest.mark.asyncio
    async def test_create_runs_every_write_on_the_session(self, store, database, transactional_service, user_a):
        course_id = store.add_course()

        await transactional_service.create_review(make_payload(course_id, 4, 2), user_a)

        session = database.sessions[-1]
        assert isinstance(session, InMemorySession)
        assert calls_in(store, session) == [
            "insert",
            "bump_review_revision",
            "get_review_revision",
            "rating_totals",
            "write_aggregates",
        ]
        assert store.aggregates(course_id) == (4.0, 2.0, 1)
        assert store.courses[course_id]["review_revision"] == 1

    @pytest.mark.asyncio
    async def test_update_runs_every_write_on_the_session(self, store, database, transactional_service, user_a):
        course_id = store.add_course()
        review = await transactional_service.create_review(make_payload(course_id, 4, 2), user_a)
        store.session_calls.clear()

        await transactional_service.update_review(review.id, ReviewUpdate(rating=2), user_a)

        session = database.sessions[-1]
        assert calls_in(store, session) == [
            "update_fields",
            "bump_review_revision",
            "get_review_revision",
            "rating_totals",
            "write_aggregates",
        ]
        assert store.aggregates(course_id) == (2.0, 2.0, 1)

    @pytest.mark.asyncio
    async def test_delete_runs_every_write_on_the_session(self, store, database, transactional_service, user_a):
        course_id = store.add_course()
        review = await transactional_service.create_review(make_payload(course_id, 4, 2), user_a)
        store.session_calls.clear()

        await transactional_service.delete_review(review.id, user_a)

        session = database.sessions[-1]
        assert calls_in(store, session) == [
            "delete",
            "bump_review_revision",
            "get_review_revision",
            "rating_totals",
            "write_aggregates",
        ]
        assert store.aggregates(course_id) == (0.0, 0.0, 0)

    @pytest.mark.asyncio
    async def test_user_review_removal_runs_each_course_on_its_own_session(
        self, store, database, transactional_service, user_a, moderator
    ):
        first = store.add_course()
        second = store.add_course()
        await transactional_service.create_review(make_payload(first, 4, 2), user_a)
        await transactional_service.create_review(make_payload(second, 3, 3), user_a)
        store.session_calls.clear()
        sessions_before = len(database.sessions)

        result = await transactional_service.delete_reviews_by_user("user-a", moderator)

        assert sorted(result.course_ids) == sorted([first, second])
        new_sessions = database.sessions[sessions_before:]
        assert len(new_sessions) == 2
        removals = [s for op, s in store.session_calls if op == "delete_by_user_and_course"]
        assert removals == new_sessions
        assert all(s in new_sessions for _, s in store.session_calls)

    @pytest.mark.asyncio
    async def test_failed_recalculation_rolls_back_the_review(
        self, store, transactional_service, course_repository, user_a
    ):
        course_id = store.add_course()
        course_repository.write_aggregates = AsyncMock(return_value=False)

        with pytest.raises(InconsistencyError):
            await transactional_service.create_review(make_payload(course_id, 4, 2), user_a)

        assert store.reviews == {}
        assert store.courses[course_id]["review_revision"] == 0
        assert store.courses[course_id]["aggregates_revision"] == 0

    @pytest.mark.asyncio
    async def test_missing_course_rolls_back_the_review(
        self, store, transactional_service, course_repository, user_a
    ):
        course_id = store.add_course()
        course_repository.bump_review_revision = AsyncMock(return_value=False)

        with pytest.raises(NotFoundError):
            await transactional_service.create_review(make_payload(course_id, 4, 2), user_a)

        assert store.reviews == {}
