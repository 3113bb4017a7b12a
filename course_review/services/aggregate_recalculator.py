"""
Aggregate Recalculator

Recomputes a course's average rating, average difficulty and review count
from the full population of its reviews. Every write is guarded by the
course's review revision, so recomputations of the same course are
serialized while different courses never wait on each other.
"""

import asyncio
import random
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from course_review.core.config import config
from course_review.core.errors import (
    InconsistencyError,
    NotFoundError,
    StoreUnavailableError,
)
from course_review.core.logger import logger
from course_review.models.course import CourseAggregates
from course_review.repositories.course import CourseRepository
from course_review.repositories.review import ReviewRepository

ONE_DECIMAL = Decimal("0.1")


def round_one_decimal(value: Decimal) -> float:
    """Round half up to one decimal place"""
    return float(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def compute_course_aggregates(count: int, rating_total: float, difficulty_total: float) -> CourseAggregates:
    """Aggregate fields for a review population given its size and sums"""
    if count <= 0:
        return CourseAggregates()

    n = Decimal(count)
    return CourseAggregates(
        average_rating=round_one_decimal(Decimal(str(rating_total)) / n),
        average_difficulty=round_one_decimal(Decimal(str(difficulty_total)) / n),
        review_count=count,
    )


@dataclass
class RecalculationResult:
    course_id: str
    aggregates: CourseAggregates
    revision: int


class AggregateRecalculator:
    """Owns every write to a course's aggregate fields"""

    def __init__(
        self,
        reviews: ReviewRepository,
        courses: CourseRepository,
        max_attempts: Optional[int] = None,
        backoff_base_ms: Optional[int] = None,
        backoff_max_ms: Optional[int] = None,
    ):
        self.reviews = reviews
        self.courses = courses
        self.max_attempts = max_attempts or config.aggregate_max_attempts
        self.backoff_base_ms = config.aggregate_backoff_base_ms if backoff_base_ms is None else backoff_base_ms
        self.backoff_max_ms = config.aggregate_backoff_max_ms if backoff_max_ms is None else backoff_max_ms

    def _backoff_seconds(self, attempt: int) -> float:
        delay_ms = min(self.backoff_base_ms * (2 ** (attempt - 1)), self.backoff_max_ms)
        return delay_ms * random.uniform(0.5, 1.0) / 1000

    async def bump_revision(self, course_id: str) -> bool:
        """
        Record a change to the course's review population outside a transaction.

        Transient store failures are retried with the same backoff as
        recalculation. Returns False if the course does not exist.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.courses.bump_review_revision(course_id)
            except StoreUnavailableError as e:
                if attempt == self.max_attempts:
                    raise
                logger.warning(
                    f"Store unavailable while bumping review revision: {e.message}",
                    metadata={"event": "revision_bump_retry", "course_id": course_id, "attempt": attempt},
                )
                await asyncio.sleep(self._backoff_seconds(attempt))

    async def _attempt(self, course_id: str, session=None) -> Optional[RecalculationResult]:
        """One read-compute-write pass; None if the revision moved underneath it"""
        revision = await self.courses.get_review_revision(course_id, session=session)
        if revision is None:
            raise NotFoundError("Course not found", details={"course_id": course_id})

        totals = await self.reviews.rating_totals(course_id, session=session)
        aggregates = compute_course_aggregates(
            totals["count"], totals["rating_total"], totals["difficulty_total"]
        )

        written = await self.courses.write_aggregates(course_id, aggregates, revision, session=session)
        if not written:
            return None
        return RecalculationResult(course_id=course_id, aggregates=aggregates, revision=revision)

    async def recalculate(self, course_id: str, session=None) -> RecalculationResult:
        """
        Bring the course's aggregate fields in line with its current reviews.

        Inside a transaction a single pass runs; the transaction runner
        retries conflicts. Outside one, revision races and store failures are
        retried with bounded exponential backoff.

        Raises:
            NotFoundError: the course does not exist
            InconsistencyError: the aggregates could not be written; the
                course stays detectably stale until reconciled
        """
        if session is not None:
            result = await self._attempt(course_id, session=session)
            if result is None:
                raise InconsistencyError(
                    "Course revision changed inside a transaction", course_id=course_id
                )
            self._log_written(result)
            return result

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self._attempt(course_id)
                if result is not None:
                    self._log_written(result, attempt)
                    return result
                logger.debug(
                    "Course revision moved during recalculation, retrying",
                    metadata={"event": "aggregates_revision_conflict", "course_id": course_id, "attempt": attempt},
                )
            except StoreUnavailableError as e:
                last_error = e
                logger.warning(
                    f"Store unavailable while recalculating aggregates: {e.message}",
                    metadata={"event": "aggregates_store_retry", "course_id": course_id, "attempt": attempt},
                )

            if attempt < self.max_attempts:
                await asyncio.sleep(self._backoff_seconds(attempt))

        logger.error(
            f"Failed to recalculate aggregates for course {course_id}",
            error=last_error,
            metadata={"event": "aggregates_recalculation_exhausted", "course_id": course_id, "attempts": self.max_attempts},
        )
        raise InconsistencyError(
            "Course statistics could not be updated; they will be repaired by reconciliation",
            course_id=course_id,
        ) from last_error

    def _log_written(self, result: RecalculationResult, attempt: int = 1):
        logger.info(
            f"Updated review aggregates for course {result.course_id}",
            metadata={
                "event": "review_aggregates_updated",
                "course_id": result.course_id,
                "revision": result.revision,
                "attempt": attempt,
                "averageRating": result.aggregates.average_rating,
                "averageDifficulty": result.aggregates.average_difficulty,
                "reviewCount": result.aggregates.review_count,
            },
        )

    async def reconcile(self, course_id: str) -> RecalculationResult:
        """Idempotently repair one course's aggregates from its reviews"""
        result = await self.recalculate(course_id)
        logger.info(
            f"Reconciled aggregates for course {course_id}",
            metadata={"event": "aggregates_reconciled", "course_id": course_id, "revision": result.revision},
        )
        return result

    async def reconcile_stale(self, limit: int = 100) -> Tuple[List[RecalculationResult], List[str]]:
        """Reconcile every course whose aggregates lag behind its reviews"""
        reconciled: List[RecalculationResult] = []
        failed: List[str] = []

        for course_id in await self.courses.find_stale_ids(limit):
            try:
                reconciled.append(await self.reconcile(course_id))
            except (InconsistencyError, NotFoundError, StoreUnavailableError) as e:
                failed.append(course_id)
                logger.error(
                    f"Reconciliation failed for course {course_id}",
                    error=e,
                    metadata={"event": "aggregates_reconcile_failed", "course_id": course_id},
                )

        logger.info(
            "Stale course sweep finished",
            metadata={"event": "aggregates_sweep_finished", "reconciled": len(reconciled), "failed": len(failed)},
        )
        return reconciled, failed
