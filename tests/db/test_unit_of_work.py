"""Tests for the Database unit of work"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure

from course_review.core.config import Config
from course_review.core.errors import ConflictError, StoreUnavailableError
from course_review.db.mongodb import Database


@pytest.fixture
def database():
    return Database(Config(mongodb_use_transactions=True))


def _session():
    session = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False

    async def run(callback):
        return await callback(session)

    session.with_transaction = AsyncMock(side_effect=run)
    return session


class TestRunInTransaction:
    @pytest.mark.asyncio
    async def test_without_transaction_support_callback_gets_no_session(self, database):
        callback = AsyncMock(return_value="done")

        assert await database.run_in_transaction(callback) == "done"
        callback.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_disabled_by_configuration(self):
        database = Database(Config(mongodb_use_transactions=False))
        database.supports_transactions = True
        callback = AsyncMock(return_value="done")

        await database.run_in_transaction(callback)

        callback.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_with_transaction_support_uses_session(self, database):
        session = _session()
        database.supports_transactions = True
        database.client = MagicMock()
        database.client.start_session = AsyncMock(return_value=session)
        callback = AsyncMock(return_value="done")

        assert await database.run_in_transaction(callback) == "done"
        callback.assert_awaited_once_with(session)
        session.with_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_domain_errors_pass_through(self, database):
        callback = AsyncMock(side_effect=ConflictError("You have already reviewed this course"))

        with pytest.raises(ConflictError):
            await database.run_in_transaction(callback)

    @pytest.mark.asyncio
    async def test_driver_errors_become_store_unavailable(self, database):
        session = _session()
        database.supports_transactions = True
        database.client = MagicMock()
        database.client.start_session = AsyncMock(return_value=session)
        callback = AsyncMock(side_effect=OperationFailure("Transaction aborted"))

        with pytest.raises(StoreUnavailableError):
            await database.run_in_transaction(callback)


class TestCollections:
    def test_collections_require_connection(self, database):
        with pytest.raises(StoreUnavailableError):
            database.reviews

    @pytest.mark.asyncio
    async def test_ping_without_client(self, database):
        assert await database.ping() is False
