"""
Dependency injection for repositories and services

Everything is built per request from the Database owned by the application.
"""

from fastapi import Depends, Request

from course_review.core.errors import StoreUnavailableError
from course_review.db.mongodb import Database
from course_review.repositories.course import CourseRepository
from course_review.repositories.review import ReviewRepository
from course_review.services.aggregate_recalculator import AggregateRecalculator
from course_review.services.course import CourseService
from course_review.services.review import ReviewService


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise StoreUnavailableError("Database connection has not been initialised")
    return database


def get_review_repository(database: Database = Depends(get_database)) -> ReviewRepository:
    return ReviewRepository(database.reviews)


def get_course_repository(database: Database = Depends(get_database)) -> CourseRepository:
    return CourseRepository(database.courses)


def get_aggregate_recalculator(
    reviews: ReviewRepository = Depends(get_review_repository),
    courses: CourseRepository = Depends(get_course_repository),
) -> AggregateRecalculator:
    return AggregateRecalculator(reviews, courses)


def get_review_service(
    database: Database = Depends(get_database),
    reviews: ReviewRepository = Depends(get_review_repository),
    courses: CourseRepository = Depends(get_course_repository),
    recalculator: AggregateRecalculator = Depends(get_aggregate_recalculator),
) -> ReviewService:
    return ReviewService(database, reviews, courses, recalculator)


def get_course_service(
    courses: CourseRepository = Depends(get_course_repository),
) -> CourseService:
    return CourseService(courses)
