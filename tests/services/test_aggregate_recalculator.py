"""Tests for the aggregate recalculator"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from course_review.core.errors import InconsistencyError, NotFoundError, StoreUnavailableError
from course_review.models.review import DifficultyText
from course_review.services.aggregate_recalculator import (
    AggregateRecalculator,
    compute_course_aggregates,
    round_one_decimal,
)
from fixtures.in_memory import InMemoryCourseRepository


def _add_review(store, course_id, user_id, rating, difficulty):
    review_id = str(ObjectId())
    now = datetime.now(timezone.utc)
    store.reviews[review_id] = {
        "id": review_id,
        "course_id": course_id,
        "user_id": user_id,
        "rating": rating,
        "difficulty": difficulty,
        "difficulty_text": DifficultyText.MODERATE,
        "content": "Reasonable course overall",
        "tags": [],
        "helpful_users": [],
        "helpful_count": 0,
        "semester": "Fall 2024",
        "professor": "Dr. Smith",
        "created_at": now,
        "updated_at": now,
    }
    store.courses[course_id]["review_revision"] += 1
    return review_id


class TestComputeCourseAggregates:
    def test_empty_population_is_zero(self):
        aggregates = compute_course_aggregates(0, 0, 0)
        assert (aggregates.average_rating, aggregates.average_difficulty, aggregates.review_count) == (0.0, 0.0, 0)

    def test_means_rounded_to_one_decimal(self):
        aggregates = compute_course_aggregates(3, 4.0 + 4.5 + 4.5, 2 + 3 + 3)
        assert aggregates.average_rating == 4.3
        assert aggregates.average_difficulty == 2.7
        assert aggregates.review_count == 3

    def test_half_rounds_up(self):
        assert round_one_decimal(Decimal("3.25")) == 3.3
        assert round_one_decimal(Decimal("3.35")) == 3.4

    def test_two_reviews(self):
        aggregates = compute_course_aggregates(2, 9.0, 6)
        assert aggregates.average_rating == 4.5
        assert aggregates.average_difficulty == 3.0


class TestAggregateRecalculator:
    """Test cases for AggregateRecalculator"""

    @pytest.mark.asyncio
    async def test_recalculate_matches_reviews(self, store, recalculator):
        course_id = store.add_course()
        _add_review(store, course_id, "user-a", 4.0, 2)
        _add_review(store, course_id, "user-b", 5.0, 4)

        result = await recalculator.recalculate(course_id)

        assert result.revision == 2
        assert store.aggregates(course_id) == (4.5, 3.0, 2)
        assert store.courses[course_id]["aggregates_revision"] == 2

    @pytest.mark.asyncio
    async def test_recalculate_missing_course(self, recalculator):
        with pytest.raises(NotFoundError):
            await recalculator.recalculate("507f1f77bcf86cd799439099")

    @pytest.mark.asyncio
    async def test_retries_when_revision_moves(self, store, review_repository, course_repository):
        course_id = store.add_course()
        _add_review(store, course_id, "user-a", 4.0, 2)
        original_totals = review_repository.rating_totals
        calls = {"count": 0}

        async def totals_with_concurrent_write(cid, session=None):
            totals = await original_totals(cid, session=session)
            calls["count"] += 1
            if calls["count"] == 1:
                # Another review lands between the read and the guarded write
                _add_review(store, course_id, "user-b", 5.0, 4)
            return totals

        review_repository.rating_totals = totals_with_concurrent_write
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=5, backoff_base_ms=0, backoff_max_ms=0
        )

        result = await recalculator.recalculate(course_id)

        assert calls["count"] == 2
        assert result.revision == 2
        assert store.aggregates(course_id) == (4.5, 3.0, 2)

    @pytest.mark.asyncio
    async def test_exhausted_attempts_leave_course_stale(self, store, review_repository, course_repository):
        course_id = store.add_course()
        _add_review(store, course_id, "user-a", 4.0, 2)
        course_repository.write_aggregates = AsyncMock(return_value=False)
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=3, backoff_base_ms=0, backoff_max_ms=0
        )

        with pytest.raises(InconsistencyError) as exc_info:
            await recalculator.recalculate(course_id)

        assert exc_info.value.course_id == course_id
        assert course_repository.write_aggregates.await_count == 3
        assert store.courses[course_id]["aggregates_revision"] != store.courses[course_id]["review_revision"]

    @pytest.mark.asyncio
    async def test_store_failures_retried(self, store, review_repository, course_repository):
        course_id = store.add_course()
        _add_review(store, course_id, "user-a", 3.5, 3)
        original = course_repository.get_review_revision
        course_repository.get_review_revision = AsyncMock(
            side_effect=[StoreUnavailableError("Database error"), await original(course_id)]
        )
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=3, backoff_base_ms=0, backoff_max_ms=0
        )

        result = await recalculator.recalculate(course_id)

        assert result.aggregates.average_rating == 3.5
        assert store.aggregates(course_id) == (3.5, 3.0, 1)

    @pytest.mark.asyncio
    async def test_single_attempt_inside_transaction(self, store, review_repository, course_repository):
        course_id = store.add_course()
        course_repository.write_aggregates = AsyncMock(return_value=False)
        recalculator = AggregateRecalculator(review_repository, course_repository, max_attempts=5)

        with pytest.raises(InconsistencyError):
            await recalculator.recalculate(course_id, session=object())

        assert course_repository.write_aggregates.await_count == 1

    @pytest.mark.asyncio
    async def test_bump_revision_retries_store_failures(self, store, review_repository, course_repository):
        course_id = store.add_course()
        original = course_repository.bump_review_revision
        course_repository.bump_review_revision = AsyncMock(
            side_effect=[StoreUnavailableError("Database error"), await original(course_id)]
        )
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=3, backoff_base_ms=0, backoff_max_ms=0
        )

        assert await recalculator.bump_revision(course_id) is True
        assert course_repository.bump_review_revision.await_count == 2

    @pytest.mark.asyncio
    async def test_bump_revision_gives_up_after_max_attempts(self, store, review_repository, course_repository):
        course_id = store.add_course()
        course_repository.bump_review_revision = AsyncMock(side_effect=StoreUnavailableError("Database error"))
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=3, backoff_base_ms=0, backoff_max_ms=0
        )

        with pytest.raises(StoreUnavailableError):
            await recalculator.bump_revision(course_id)

        assert course_repository.bump_review_revision.await_count == 3

    @pytest.mark.asyncio
    async def test_bump_revision_missing_course(self, recalculator):
        assert await recalculator.bump_revision("507f1f77bcf86cd799439099") is False

    def test_backoff_is_bounded(self, review_repository, course_repository):
        recalculator = AggregateRecalculator(
            review_repository, course_repository, max_attempts=10, backoff_base_ms=25, backoff_max_ms=100
        )
        assert 0.0125 <= recalculator._backoff_seconds(1) <= 0.025
        assert recalculator._backoff_seconds(10) <= 0.1


class TestReconciliation:
    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self, store, recalculator):
        course_id = store.add_course()
        _add_review(store, course_id, "user-a", 4.0, 2)

        first = await recalculator.reconcile(course_id)
        second = await recalculator.reconcile(course_id)

        assert first.aggregates == second.aggregates
        assert store.aggregates(course_id) == (4.0, 2.0, 1)

    @pytest.mark.asyncio
    async def test_reconcile_stale_repairs_only_stale_courses(self, store, recalculator):
        fresh = store.add_course()
        stale = store.add_course()
        _add_review(store, stale, "user-a", 2.0, 5)

        reconciled, failed = await recalculator.reconcile_stale()

        assert [r.course_id for r in reconciled] == [stale]
        assert failed == []
        assert store.aggregates(stale) == (2.0, 5.0, 1)
        assert store.aggregates(fresh) == (0.0, 0.0, 0)

    @pytest.mark.asyncio
    async def test_reconcile_stale_reports_failures(self, store, review_repository):
        stale = store.add_course()
        _add_review(store, stale, "user-a", 2.0, 5)

        class StuckCourseRepository(InMemoryCourseRepository):
            async def write_aggregates(self, *args, **kwargs):
                return False

        recalculator = AggregateRecalculator(
            review_repository, StuckCourseRepository(store), max_attempts=2, backoff_base_ms=0, backoff_max_ms=0
        )

        reconciled, failed = await recalculator.reconcile_stale()

        assert reconciled == []
        assert failed == [stale]
