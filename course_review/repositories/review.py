"""
Review repository: the review record store
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from course_review.core.errors import ConflictError
from course_review.models.review import Review
from course_review.repositories.base import page_bounds, store_errors, stringify_id, to_object_id
from course_review.schemas.review import ReviewResponse


def _plain(value: Any) -> Any:
    """Unwrap enum members so documents hold their stored values"""
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return getattr(value, "value", value)


def helpful_toggle_pipeline(user_id: str) -> List[dict]:
    """
    Update pipeline that flips user_id's membership in helpful_users and
    resets helpful_count to the size of the resulting set, as one write.
    """
    user = {"$literal": user_id}
    return [
        {
            "$set": {
                "helpful_users": {
                    "$let": {
                        "vars": {"current": {"$ifNull": ["$helpful_users", []]}},
                        "in": {
                            "$cond": [
                                {"$in": [user, "$$current"]},
                                {"$filter": {"input": "$$current", "cond": {"$ne": ["$$this", user]}}},
                                {"$concatArrays": ["$$current", [user]]},
                            ]
                        },
                    }
                }
            }
        },
        {"$set": {"helpful_count": {"$size": "$helpful_users"}}},
    ]


class ReviewRepository:
    """Repository for review data access operations"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def _doc_to_response(self, doc: Optional[dict]) -> Optional[ReviewResponse]:
        """Convert MongoDB document to ReviewResponse schema"""
        doc = stringify_id(doc, "course_id")
        if doc is None:
            return None
        doc["helpful_users"] = [str(u) for u in doc.get("helpful_users", [])]
        return ReviewResponse(**doc)

    async def insert(self, review: Review, session=None) -> ReviewResponse:
        """Insert a review; a second review by the same user for the course is a conflict"""
        doc = {k: _plain(v) for k, v in review.model_dump(exclude={"id"}).items()}
        doc["course_id"] = to_object_id(review.course_id, "course_id")

        with store_errors("review creation", session):
            try:
                result = await self.collection.insert_one(doc, session=session)
            except DuplicateKeyError as e:
                raise ConflictError(
                    "You have already reviewed this course",
                    details={"course_id": review.course_id, "user_id": review.user_id},
                ) from e

        doc["_id"] = result.inserted_id
        return self._doc_to_response(doc)

    async def get_by_id(self, review_id: str, session=None) -> Optional[ReviewResponse]:
        """Get review by ID"""
        obj_id = to_object_id(review_id, "review_id")
        with store_errors("review retrieval", session):
            doc = await self.collection.find_one({"_id": obj_id}, session=session)
        return self._doc_to_response(doc)

    async def find_by_user_and_course(self, user_id: str, course_id: str) -> Optional[ReviewResponse]:
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("review lookup"):
            doc = await self.collection.find_one({"user_id": user_id, "course_id": obj_id})
        return self._doc_to_response(doc)

    async def list_reviews(
        self,
        course_id: Optional[str] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[ReviewResponse], int]:
        """List reviews newest first, filtered by course and/or author"""
        query: Dict[str, Any] = {}
        if course_id:
            query["course_id"] = to_object_id(course_id, "course_id")
        if user_id:
            query["user_id"] = user_id

        skip, limit = page_bounds(page, limit)
        with store_errors("review listing"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
            docs = await cursor.to_list(length=limit)

        return [self._doc_to_response(doc) for doc in docs], total

    async def update_fields(
        self, review_id: str, fields: Dict[str, Any], session=None
    ) -> Optional[ReviewResponse]:
        """Apply field edits and return the updated review"""
        obj_id = to_object_id(review_id, "review_id")
        update = {k: _plain(v) for k, v in fields.items()}
        update["updated_at"] = datetime.now(timezone.utc)

        with store_errors("review update", session):
            doc = await self.collection.find_one_and_update(
                {"_id": obj_id},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
                session=session,
            )
        return self._doc_to_response(doc)

    async def delete(self, review_id: str, session=None) -> Optional[ReviewResponse]:
        """Delete a review, returning the removed document"""
        obj_id = to_object_id(review_id, "review_id")
        with store_errors("review deletion", session):
            doc = await self.collection.find_one_and_delete({"_id": obj_id}, session=session)
        return self._doc_to_response(doc)

    async def restore(self, review: ReviewResponse, session=None) -> ReviewResponse:
        """Put a deleted review back under its original id"""
        doc = {k: _plain(v) for k, v in review.model_dump(exclude={"id"}).items()}
        doc["_id"] = to_object_id(review.id, "review_id")
        doc["course_id"] = to_object_id(review.course_id, "course_id")

        with store_errors("review restore", session):
            try:
                await self.collection.insert_one(doc, session=session)
            except DuplicateKeyError as e:
                raise ConflictError(
                    "Review could not be restored; the user has reviewed this course again",
                    details={"review_id": review.id, "course_id": review.course_id},
                ) from e
        return self._doc_to_response(doc)

    async def course_ids_for_user(self, user_id: str) -> List[str]:
        """Ids of every course the user has reviewed"""
        with store_errors("review course lookup"):
            course_ids = await self.collection.distinct("course_id", {"user_id": user_id})
        return [str(course_id) for course_id in course_ids]

    async def delete_by_user_and_course(
        self, user_id: str, course_id: str, session=None
    ) -> Optional[ReviewResponse]:
        obj_id = to_object_id(course_id, "course_id")
        with store_errors("review deletion", session):
            doc = await self.collection.find_one_and_delete(
                {"user_id": user_id, "course_id": obj_id}, session=session
            )
        return self._doc_to_response(doc)

    async def rating_totals(self, course_id: str, session=None) -> Dict[str, float]:
        """Count and sum ratings/difficulties over every review of a course"""
        obj_id = to_object_id(course_id, "course_id")
        pipeline = [
            {"$match": {"course_id": obj_id}},
            {
                "$group": {
                    "_id": None,
                    "count": {"$sum": 1},
                    "rating_total": {"$sum": "$rating"},
                    "difficulty_total": {"$sum": "$difficulty"},
                }
            },
        ]

        with store_errors("review aggregation", session):
            results = await self.collection.aggregate(pipeline, session=session).to_list(length=1)

        if not results:
            return {"count": 0, "rating_total": 0, "difficulty_total": 0}
        return {
            "count": results[0]["count"],
            "rating_total": results[0]["rating_total"],
            "difficulty_total": results[0]["difficulty_total"],
        }

    async def toggle_helpful(self, review_id: str, user_id: str) -> Optional[Tuple[ReviewResponse, bool]]:
        """
        Flip user_id's helpful vote on a review atomically.

        Returns the updated review and whether the user now counts as a
        helpful voter, or None if the review does not exist.
        """
        obj_id = to_object_id(review_id, "review_id")
        with store_errors("helpful vote toggle"):
            doc = await self.collection.find_one_and_update(
                {"_id": obj_id},
                helpful_toggle_pipeline(user_id),
                return_document=ReturnDocument.AFTER,
            )

        review = self._doc_to_response(doc)
        if review is None:
            return None
        return review, user_id in review.helpful_users
