"""
Course repository, including the aggregate sink used by the recalculator
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from course_review.core.errors import ConflictError
from course_review.models.course import CourseAggregates
from course_review.repositories.base import page_bounds, store_errors, stringify_id, to_object_id
from course_review.schemas.course import CourseCreate, CourseResponse

STALE_QUERY = {
    "$expr": {
        "$ne": [
            {"$ifNull": ["$aggregates_revision", 0]},
            {"$ifNull": ["$review_revision", 0]},
        ]
    }
}


class CourseRepository:
    """Repository for course data access operations"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def _doc_to_response(self, doc: Optional[dict]) -> Optional[CourseResponse]:
        """Convert MongoDB document to CourseResponse schema"""
        doc = stringify_id(doc)
        if doc is None:
            return None
        return CourseResponse(**doc)

    async def create(self, course_data: CourseCreate) -> CourseResponse:
        """Create a new course with zeroed aggregates"""
        now = datetime.now(timezone.utc)
        doc = course_data.model_dump()
        doc.update({
            "average_rating": 0.0,
            "average_difficulty": 0.0,
            "review_count": 0,
            "review_revision": 0,
            "aggregates_revision": 0,
            "created_at": now,
            "updated_at": now,
        })

        with store_errors("course creation"):
            try:
                result = await self.collection.insert_one(doc)
            except DuplicateKeyError as e:
                raise ConflictError(
                    "Course with this code already exists",
                    details={"full_code": course_data.full_code},
                ) from e

        doc["_id"] = result.inserted_id
        return self._doc_to_response(doc)

    async def get_by_id(self, course_id: str, session=None) -> Optional[CourseResponse]:
        """Get course by ID"""
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("course retrieval", session):
            doc = await self.collection.find_one({"_id": obj_id}, session=session)
        return self._doc_to_response(doc)

    async def exists(self, course_id: str, session=None) -> bool:
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("course lookup", session):
            doc = await self.collection.find_one({"_id": obj_id}, {"_id": 1}, session=session)
        return doc is not None

    async def full_code_exists(self, full_code: str) -> bool:
        with store_errors("course lookup"):
            doc = await self.collection.find_one({"full_code": full_code}, {"_id": 1})
        return doc is not None

    async def list_courses(
        self,
        prefix: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[CourseResponse], int]:
        """List courses by prefix and word match on code or name, ordered by code"""
        query: Dict[str, Any] = {}
        if prefix:
            query["prefix"] = prefix
        if search and search.strip():
            pattern = {"$regex": rf"\b{re.escape(search.strip())}\b", "$options": "i"}
            query["$or"] = [{"full_code": pattern}, {"name": pattern}]

        skip, limit = page_bounds(page, limit)
        with store_errors("course listing"):
            total = await self.collection.count_documents(query)
            cursor = (
                self.collection.find(query)
                .sort([("prefix", ASCENDING), ("course_code", ASCENDING)])
                .skip(skip)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)

        return [self._doc_to_response(doc) for doc in docs], total

    async def bump_review_revision(self, course_id: str, session=None) -> bool:
        """Record that the course's review population changed"""
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("course revision update", session):
            result = await self.collection.update_one(
                {"_id": obj_id},
                {"$inc": {"review_revision": 1}},
                session=session,
            )
        return result.matched_count > 0

    async def get_review_revision(self, course_id: str, session=None) -> Optional[int]:
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("course revision lookup", session):
            doc = await self.collection.find_one(
                {"_id": obj_id}, {"review_revision": 1}, session=session
            )
        if doc is None:
            return None
        return doc.get("review_revision", 0)

    async def write_aggregates(
        self,
        course_id: str,
        aggregates: CourseAggregates,
        revision: int,
        session=None,
    ) -> bool:
        """
        Write the three aggregate fields if the course is still at revision.

        Returns False when a newer review mutation has bumped the revision in
        the meantime, in which case the aggregates were not written.
        """
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("course aggregate update", session):
            result = await self.collection.update_one(
                {"_id": obj_id, "review_revision": revision},
                {
                    "$set": {
                        "average_rating": aggregates.average_rating,
                        "average_difficulty": aggregates.average_difficulty,
                        "review_count": aggregates.review_count,
                        "aggregates_revision": revision,
                    }
                },
                session=session,
            )
        return result.matched_count > 0

    async def find_stale_ids(self, limit: int = 100) -> List[str]:
        """Ids of courses whose aggregates lag behind their review revision"""
        with store_errors("stale course lookup"):
            docs = await self.collection.find(STALE_QUERY, {"_id": 1}).limit(limit).to_list(length=limit)
        return [str(doc["_id"]) for doc in docs]
