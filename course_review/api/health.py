"""
Health endpoints
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from course_review.core.config import config

router = APIRouter()


@router.get("/health")
def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": config.api_version,
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness probe - the service is ready once MongoDB answers a ping"""
    database = getattr(request.app.state, "database", None)
    ready = database is not None and await database.ping()
    body = {
        "status": "ready" if ready else "not ready",
        "service": config.service_name,
        "checks": {
            "database": "healthy" if ready else "unreachable",
            "transactions": bool(database and database.use_transactions),
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=body)
