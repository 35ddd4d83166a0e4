"""Driver errors raised inside a matching transaction and how they surface."""

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from app.core.errors import InternalError, TransientError
from app.services.transitions import plan_like


class _DriverError(Exception):
    def __init__(self, message: str, *, sqlstate: str | None = None, pgcode: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.pgcode = pgcode


def _dbapi_error(**codes) -> DBAPIError:
    return DBAPIError("UPDATE users SET total_likes = ?", {}, _DriverError("driver failure", **codes))


class TestTransactionErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["40001", "40P01", "55P03", "57014"])
    async def test_retryable_sqlstates_become_transient(self, engine, code):
        with pytest.raises(TransientError) as info:
            async with engine._transaction("like"):
                raise _dbapi_error(sqlstate=code)
        assert info.value.status_code == 503
        assert isinstance(info.value.__cause__, DBAPIError)

    @pytest.mark.asyncio
    async def test_pgcode_is_read_too(self, engine):
        with pytest.raises(TransientError):
            async with engine._transaction("reject"):
                raise _dbapi_error(pgcode="40P01")

    @pytest.mark.asyncio
    async def test_operational_error_is_transient(self, engine):
        with pytest.raises(TransientError):
            async with engine._transaction("block"):
                raise OperationalError("SELECT 1", {}, _DriverError("database is locked"))

    @pytest.mark.asyncio
    async def test_other_sqlstates_are_internal(self, engine):
        with pytest.raises(InternalError) as info:
            async with engine._transaction("like"):
                raise _dbapi_error(sqlstate="23505")
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_are_internal(self, engine):
        with pytest.raises(InternalError):
            async with engine._transaction("like"):
                raise KeyError("boom")

    @pytest.mark.asyncio
    async def test_failed_transaction_is_rolled_back(self, engine, make_human, make_bot, store):
        a = await make_human()
        bot = await make_bot()

        with pytest.raises(TransientError):
            async with engine._transaction("like") as db:
                await engine._apply(db, a, bot, None, None, plan_like(None, None, True))
                raise _dbapi_error(sqlstate="40001")

        assert await store.edge(a, bot) is None
        assert await store.counters(a) == (0, 0, 0)
