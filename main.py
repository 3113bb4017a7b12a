"""
FastAPI Application - Course Review Service
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from course_review.api import admin, courses, health, reviews
from course_review.core.config import config
from course_review.core.errors import (
    ErrorResponse,
    ReviewServiceError,
    error_response_handler,
    http_exception_handler,
    request_validation_handler,
    review_service_error_handler,
)
from course_review.core.logger import logger
from course_review.core.telemetry import instrument_app
from course_review.db import Database, create_indexes
from course_review.middleware import CorrelationIdMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Course Review Service...")
    database = Database(config)
    await database.connect()
    await create_indexes(database)
    app.state.database = database

    logger.info(
        "Course Review Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
        },
    )

    yield

    logger.info("Shutting down Course Review Service...")
    await database.close()
    app.state.database = None


def create_app() -> FastAPI:
    app = FastAPI(
        title="Course Review Service",
        description="Course catalogue with reviews, helpful votes and review statistics",
        version=config.service_version,
        lifespan=lifespan,
    )

    instrument_app(app)

    app.add_exception_handler(ReviewServiceError, review_service_error_handler)
    app.add_exception_handler(ErrorResponse, error_response_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(courses.router, prefix="/api/courses", tags=["courses"])
    app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
        },
    )

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development",
    )
