"""
Review service containing the review commands and read paths

Each mutating command bundles the review write, the course revision bump and
the aggregate recalculation into one unit of work run by the Database.
Without transaction support the revision is bumped before and after the
review write: an interrupted command leaves the course stale for
reconciliation, and a write whose second bump cannot land is undone.
"""

import math
from typing import Awaitable, Callable, List, Optional

from course_review.core.errors import (
    ConflictError,
    InconsistencyError,
    NotFoundError,
    PermissionDeniedError,
    ReviewServiceError,
    StoreUnavailableError,
    ValidationError,
)
from course_review.core.logger import logger
from course_review.db.mongodb import Database
from course_review.models.review import Review, difficulty_text_for
from course_review.models.user import User
from course_review.repositories.course import CourseRepository
from course_review.repositories.review import ReviewRepository
from course_review.schemas.review import (
    HelpfulToggleResponse,
    Pagination,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    UserReviewsDeletedResponse,
)
from course_review.services.aggregate_recalculator import AggregateRecalculator
from course_review.validators.review_validators import validate_model

EDITABLE_FIELDS = ("rating", "difficulty", "content", "tags", "semester", "professor")
AGGREGATE_FIELDS = ("rating", "difficulty")

Undo = Callable[[], Awaitable[object]]


def _require_identity(actor: User) -> str:
    if actor is None or not actor.id or not actor.id.strip():
        raise ValidationError("Authenticated user id is required", field="user_id")
    return actor.id


def _course_not_found(course_id: str) -> NotFoundError:
    return NotFoundError("Course not found", details={"course_id": course_id})


class ReviewService:
    """Service layer for review business logic"""

    def __init__(
        self,
        database: Database,
        reviews: ReviewRepository,
        courses: CourseRepository,
        recalculator: AggregateRecalculator,
    ):
        self.database = database
        self.reviews = reviews
        self.courses = courses
        self.recalculator = recalculator

    async def _mark_changed(self, course_id: str, session=None) -> bool:
        """Bump the course's review revision; False if the course is gone"""
        if session is not None:
            return await self.courses.bump_review_revision(course_id, session=session)
        return await self.recalculator.bump_revision(course_id)

    async def _confirm_change(self, course_id: str, session, undo: Undo, require_course: bool = True) -> bool:
        """
        Bump the revision after a review write.

        Outside a transaction a bump that cannot land undoes the write before
        the error propagates. With require_course, a vanished course undoes
        the write and raises NotFoundError.
        """
        try:
            bumped = await self._mark_changed(course_id, session)
        except StoreUnavailableError:
            if session is None:
                await self._undo(course_id, undo)
            raise

        if not bumped and require_course:
            if session is None:
                await self._undo(course_id, undo)
            raise _course_not_found(course_id)
        return bumped

    async def _undo(self, course_id: str, undo: Undo) -> None:
        try:
            await undo()
        except ReviewServiceError as e:
            logger.error(
                f"Could not undo review change for course {course_id}",
                error=e,
                metadata={"event": "review_compensation_failed", "course_id": course_id},
            )
            raise InconsistencyError(
                "Review change could not be undone; course statistics will be repaired by reconciliation",
                course_id=course_id,
            ) from e

        logger.warning(
            f"Undid review change for course {course_id}",
            metadata={"event": "review_change_undone", "course_id": course_id},
        )

    async def create_review(self, payload: ReviewCreate, actor: User) -> ReviewResponse:
        """
        Create a review for the acting user and refresh the course aggregates.

        Raises:
            NotFoundError: the course does not exist
            ConflictError: the user already reviewed this course
        """
        user_id = _require_identity(actor)
        course_id = payload.course_id

        if not await self.courses.exists(course_id):
            raise _course_not_found(course_id)

        if await self.reviews.find_by_user_and_course(user_id, course_id):
            raise ConflictError(
                "You have already reviewed this course",
                details={"course_id": course_id, "user_id": user_id},
            )

        review = Review(
            course_id=course_id,
            user_id=user_id,
            rating=payload.rating,
            difficulty=payload.difficulty,
            difficulty_text=difficulty_text_for(payload.difficulty),
            content=payload.content,
            tags=payload.tags,
            semester=payload.semester,
            professor=payload.professor,
        )

        async def unit_of_work(session):
            if session is None and not await self._mark_changed(course_id):
                raise _course_not_found(course_id)

            created = await self.reviews.insert(review, session=session)

            async def undo():
                await self.reviews.delete(created.id)

            await self._confirm_change(course_id, session, undo)
            await self.recalculator.recalculate(course_id, session=session)
            return created

        created = await self.database.run_in_transaction(unit_of_work)

        logger.info(
            f"Created review {created.id} for course {course_id}",
            user_id=user_id,
            metadata={"event": "create_review", "review_id": created.id, "course_id": course_id},
        )
        return created

    async def update_review(self, review_id: str, changes: ReviewUpdate, actor: User) -> ReviewResponse:
        """
        Edit the acting user's own review.

        The course aggregates are recalculated when rating or difficulty change.
        """
        user_id = _require_identity(actor)
        existing = await self.reviews.get_by_id(review_id)
        if existing is None:
            raise NotFoundError("Review not found", details={"review_id": review_id})

        if existing.user_id != user_id:
            raise PermissionDeniedError("You can only update your own review")

        fields = {k: v for k, v in changes.model_dump(exclude_unset=True).items() if v is not None}
        if not fields:
            return existing

        # The edited review as a whole must still be a valid submission
        merged = {"course_id": existing.course_id, **existing.model_dump(include=set(EDITABLE_FIELDS)), **fields}
        validate_model(ReviewCreate, merged)

        if "difficulty" in fields:
            fields["difficulty_text"] = difficulty_text_for(fields["difficulty"])

        affects_aggregates = any(
            field in fields and fields[field] != getattr(existing, field)
            for field in AGGREGATE_FIELDS
        )
        course_id = existing.course_id
        previous = {field: getattr(existing, field) for field in fields}

        async def unit_of_work(session):
            if affects_aggregates and session is None and not await self._mark_changed(course_id):
                raise _course_not_found(course_id)

            updated = await self.reviews.update_fields(review_id, fields, session=session)
            if updated is None:
                raise NotFoundError("Review not found", details={"review_id": review_id})

            if affects_aggregates:
                async def undo():
                    await self.reviews.update_fields(review_id, previous)

                await self._confirm_change(course_id, session, undo)
                await self.recalculator.recalculate(course_id, session=session)
            return updated

        updated = await self.database.run_in_transaction(unit_of_work)

        logger.info(
            f"Updated review {review_id}",
            user_id=user_id,
            metadata={
                "event": "update_review",
                "review_id": review_id,
                "course_id": course_id,
                "fields": sorted(fields),
                "aggregatesRecalculated": affects_aggregates,
            },
        )
        return updated

    async def _remove_review(
        self,
        course_id: str,
        remove: Callable[[object], Awaitable[Optional[ReviewResponse]]],
    ) -> Optional[ReviewResponse]:
        """
        Delete one review of a course with remove(session) and refresh the
        course. A review whose course no longer exists is still deleted.
        """
        async def unit_of_work(session):
            course_exists = True
            if session is None:
                course_exists = await self._mark_changed(course_id)

            deleted = await remove(session)
            if deleted is None or not course_exists:
                return deleted

            async def undo():
                await self.reviews.restore(deleted)

            if await self._confirm_change(course_id, session, undo, require_course=False):
                await self.recalculator.recalculate(course_id, session=session)
            return deleted

        return await self.database.run_in_transaction(unit_of_work)

    async def delete_review(self, review_id: str, actor: User) -> None:
        """Delete a review as its author, a moderator or an admin"""
        user_id = _require_identity(actor)
        existing = await self.reviews.get_by_id(review_id)
        if existing is None:
            raise NotFoundError("Review not found", details={"review_id": review_id})

        if existing.user_id != user_id and not actor.is_moderator():
            raise PermissionDeniedError("You can only delete your own review unless you are a moderator")

        deleted = await self._remove_review(
            existing.course_id,
            lambda session: self.reviews.delete(review_id, session=session),
        )
        if deleted is None:
            raise NotFoundError("Review not found", details={"review_id": review_id})

        logger.info(
            f"Deleted review {review_id}",
            user_id=user_id,
            metadata={"event": "delete_review", "review_id": review_id, "course_id": deleted.course_id},
        )

    async def delete_reviews_by_user(self, user_id: str, actor: User) -> UserReviewsDeletedResponse:
        """
        Remove every review written by user_id, e.g. when the account is closed.

        Each affected course is its own unit of work. Courses that fail are
        reported and left for reconciliation while the others proceed.
        """
        actor_id = _require_identity(actor)
        if not actor.is_moderator():
            raise PermissionDeniedError("Only moderators can remove a user's reviews")
        if not user_id or not user_id.strip():
            raise ValidationError("User id is required", field="user_id")

        deleted_from: List[str] = []
        failed: List[str] = []

        for course_id in await self.reviews.course_ids_for_user(user_id):
            try:
                deleted = await self._remove_review(
                    course_id,
                    lambda session, course_id=course_id: self.reviews.delete_by_user_and_course(
                        user_id, course_id, session=session
                    ),
                )
            except (InconsistencyError, StoreUnavailableError) as e:
                failed.append(course_id)
                logger.error(
                    f"Could not remove review by {user_id} from course {course_id}",
                    user_id=actor_id,
                    error=e,
                    metadata={"event": "delete_user_review_failed", "course_id": course_id, "target_user": user_id},
                )
                continue

            if deleted is not None:
                deleted_from.append(course_id)

        logger.info(
            f"Removed {len(deleted_from)} review(s) by user {user_id}",
            user_id=actor_id,
            metadata={
                "event": "delete_user_reviews",
                "target_user": user_id,
                "deleted": len(deleted_from),
                "failed": len(failed),
            },
        )
        return UserReviewsDeletedResponse(
            user_id=user_id,
            deleted=len(deleted_from),
            course_ids=deleted_from,
            failed=failed,
        )

    async def toggle_helpful(self, review_id: str, actor: User) -> HelpfulToggleResponse:
        """Flip the acting user's helpful vote on a review"""
        user_id = _require_identity(actor)

        result = await self.reviews.toggle_helpful(review_id, user_id)
        if result is None:
            raise NotFoundError("Review not found", details={"review_id": review_id})

        review, helpful = result
        logger.info(
            f"{'Marked' if helpful else 'Unmarked'} review {review_id} as helpful",
            user_id=user_id,
            metadata={"event": "toggle_helpful", "review_id": review_id, "helpfulCount": review.helpful_count},
        )
        return HelpfulToggleResponse(
            review_id=review.id,
            helpful=helpful,
            helpful_count=review.helpful_count,
            message="Marked as helpful" if helpful else "Removed helpful mark",
        )

    async def get_review(self, review_id: str) -> ReviewResponse:
        review = await self.reviews.get_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found", details={"review_id": review_id})
        return review

    async def list_reviews(
        self,
        course_id: Optional[str] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReviewListResponse:
        """List reviews for a course and/or author, newest first"""
        if not course_id and not user_id:
            raise ValidationError(
                "At least one search parameter (course_id or user_id) is required",
                field="course_id",
            )

        reviews, total = await self.reviews.list_reviews(
            course_id=course_id, user_id=user_id, page=page, limit=limit
        )
        return ReviewListResponse(
            reviews=reviews,
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                pages=math.ceil(total / limit) if limit else 0,
            ),
        )
