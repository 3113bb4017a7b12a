"""
Review API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from course_review.core.errors import ErrorResponseModel
from course_review.dependencies.auth import get_current_user
from course_review.dependencies.services import get_review_service
from course_review.models.user import User
from course_review.schemas.review import (
    HelpfulToggleResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from course_review.services.review import ReviewService

router = APIRouter()


@router.get(
    "",
    response_model=ReviewListResponse,
    responses={400: {"model": ErrorResponseModel}},
)
async def list_reviews(
    course_id: Optional[str] = Query(None, description="Filter by course"),
    user_id: Optional[str] = Query(None, description="Filter by author"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    """
    List reviews for a course or an author, newest first.
    At least one of course_id or user_id is required.
    """
    return await service.list_reviews(course_id=course_id, user_id=user_id, page=page, limit=limit)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
        409: {"model": ErrorResponseModel},
    },
)
async def create_review(
    review: ReviewCreate,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Submit a review. One review per user per course.
    The difficulty label is derived from the difficulty value.
    """
    return await service.create_review(review, user)


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={400: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def get_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
):
    return await service.get_review(review_id)


@router.patch(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={403: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def update_review(
    review_id: str,
    changes: ReviewUpdate,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Update a review. Only its author can update it.
    """
    return await service.update_review(review_id, changes, user)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def delete_review(
    review_id: str,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Delete a review. Only its author or a moderator can delete it.
    """
    await service.delete_review(review_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{review_id}/helpful",
    response_model=HelpfulToggleResponse,
    responses={400: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def toggle_helpful(
    review_id: str,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Mark a review as helpful, or remove the mark if already set.
    """
    return await service.toggle_helpful(review_id, user)
