"""
Admin endpoints for repairing course review statistics and removing a user's reviews
"""

from fastapi import APIRouter, Depends, Query

from course_review.core.errors import ErrorResponseModel
from course_review.core.logger import logger
from course_review.dependencies.auth import require_moderator
from course_review.dependencies.services import get_aggregate_recalculator, get_review_service
from course_review.models.user import User
from course_review.schemas.course import ReconcileResponse, ReconcileSweepResponse
from course_review.schemas.review import UserReviewsDeletedResponse
from course_review.services.aggregate_recalculator import AggregateRecalculator
from course_review.services.review import ReviewService

router = APIRouter()


@router.post(
    "/courses/{course_id}/reconcile",
    response_model=ReconcileResponse,
    responses={404: {"model": ErrorResponseModel}, 500: {"model": ErrorResponseModel}},
)
async def reconcile_course(
    course_id: str,
    user: User = Depends(require_moderator),
    recalculator: AggregateRecalculator = Depends(get_aggregate_recalculator),
):
    """
    Recompute one course's statistics from its reviews. Safe to repeat.
    """
    logger.info(
        f"Reconciliation requested for course {course_id}",
        user_id=user.id,
        metadata={"event": "reconcile_requested", "course_id": course_id},
    )
    result = await recalculator.reconcile(course_id)
    return ReconcileResponse(course_id=result.course_id, aggregates=result.aggregates, revision=result.revision)


@router.post("/reconcile", response_model=ReconcileSweepResponse)
async def reconcile_stale_courses(
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(require_moderator),
    recalculator: AggregateRecalculator = Depends(get_aggregate_recalculator),
):
    """
    Reconcile every course whose statistics lag behind its reviews.
    """
    reconciled, failed = await recalculator.reconcile_stale(limit)
    return ReconcileSweepResponse(
        reconciled=[
            ReconcileResponse(course_id=r.course_id, aggregates=r.aggregates, revision=r.revision)
            for r in reconciled
        ],
        failed=failed,
    )


@router.delete(
    "/users/{user_id}/reviews",
    response_model=UserReviewsDeletedResponse,
    responses={403: {"model": ErrorResponseModel}},
)
async def delete_user_reviews(
    user_id: str,
    user: User = Depends(require_moderator),
    service: ReviewService = Depends(get_review_service),
):
    """
    Remove every review written by a user and refresh the affected courses.
    """
    return await service.delete_reviews_by_user(user_id, user)
