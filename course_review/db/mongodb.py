"""
MongoDB connection management

The Database object is created and owned by the application lifespan and
handed to request handlers through app.state; nothing here is cached at
module level.
"""

from typing import Awaitable, Callable, Optional, TypeVar

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from course_review.core.config import Config
from course_review.core.errors import ErrorResponse, ReviewServiceError, StoreUnavailableError
from course_review.core.logger import logger

T = TypeVar("T")

REVIEWS_COLLECTION = "reviews"
COURSES_COLLECTION = "courses"


class Database:
    """Database connection manager"""

    def __init__(self, settings: Config):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.supports_transactions = False

    @property
    def use_transactions(self) -> bool:
        return self.settings.mongodb_use_transactions and self.supports_transactions

    async def connect(self):
        """Create the client, verify the server and detect transaction support"""
        logger.info("Connecting to MongoDB...")

        try:
            timeout = self.settings.mongodb_timeout_ms
            self.client = AsyncIOMotorClient(
                self.settings.mongodb_url,
                serverSelectionTimeoutMS=timeout,
                connectTimeoutMS=timeout,
                socketTimeoutMS=timeout,
            )
            self.database = self.client[self.settings.mongodb_database]

            hello = await self.client.admin.command("hello")
            # Transactions need a replica set member or a mongos router
            self.supports_transactions = "setName" in hello or hello.get("msg") == "isdbgrid"

            logger.info(
                f"Successfully connected to MongoDB database '{self.settings.mongodb_database}'",
                metadata={
                    "event": "mongodb_connected",
                    "database": self.settings.mongodb_database,
                    "host": self.settings.mongodb_host,
                    "port": self.settings.mongodb_port,
                    "transactions": self.use_transactions,
                },
            )
            if not self.use_transactions:
                logger.warning(
                    "MongoDB transactions unavailable; review mutations fall back to compensation",
                    metadata={"event": "mongodb_transactions_disabled"},
                )
        except PyMongoError as e:
            logger.error(
                f"Could not connect to MongoDB: {e}",
                metadata={"event": "mongodb_connection_error", "error": str(e)},
            )
            raise ErrorResponse(f"Could not connect to MongoDB: {e}", status_code=503)

    async def close(self):
        """Close database connection"""
        logger.info("Closing connection to MongoDB...")
        if self.client is not None:
            self.client.close()
            self.client = None
            self.database = None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError:
            return False

    def _require_database(self) -> AsyncIOMotorDatabase:
        if self.database is None:
            raise StoreUnavailableError("Database connection has not been initialised")
        return self.database

    @property
    def reviews(self) -> AsyncIOMotorCollection:
        return self._require_database()[REVIEWS_COLLECTION]

    @property
    def courses(self) -> AsyncIOMotorCollection:
        return self._require_database()[COURSES_COLLECTION]

    async def run_in_transaction(
        self,
        callback: Callable[[Optional[AsyncIOMotorClientSession]], Awaitable[T]],
    ) -> T:
        """
        Run callback as one unit of work.

        With transaction support the callback receives a session and runs
        inside with_transaction, which retries transient conflicts and commits
        or aborts as a whole. Without it the callback receives None and is
        responsible for its own compensation.
        """
        try:
            if not self.use_transactions:
                return await callback(None)

            async with await self.client.start_session() as session:
                return await session.with_transaction(callback)

        except ReviewServiceError:
            raise
        except PyMongoError as e:
            logger.error(
                "Unit of work failed against MongoDB",
                error=e,
                metadata={"event": "unit_of_work_failed"},
            )
            raise StoreUnavailableError("Database error while saving changes") from e
