"""Shared fixtures: a throwaway SQLite database per test and account factories."""

from __future__ import annotations

from itertools import count

import pytest
import pytest_asyncio
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.config import MatchingConfig
from app.db.models import (
    Base,
    Chat,
    User,
    UserBlock,
    UserInteraction,
    USER_KIND_AUTOMATED,
    USER_KIND_HUMAN,
)
from app.services.chat import canonical_pair
from app.services.matching import MatchingEngine


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.calls: list[tuple[int, int, int | None]] = []
        self.fail = fail

    async def notify_match(self, actor_id, target_id, channel_id):
        self.calls.append((actor_id, target_id, channel_id))
        if self.fail:
            raise RuntimeError("push backend down")


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'matching.db'}")

    # let SQLAlchemy own BEGIN so SAVEPOINTs behave on pysqlite
    @event.listens_for(db_engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db_engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(db_engine, expire_on_commit=False)

    await db_engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def config() -> MatchingConfig:
    return MatchingConfig(page_size=10, max_page_size=50)


@pytest_asyncio.fixture
async def engine(session_factory, notifier, config):
    matching = MatchingEngine(session_factory, notifier=notifier, config=config)
    yield matching
    await matching.wait_for_notifications()


@pytest.fixture
def make_user(session_factory):
    seq = count(1)

    async def _make(kind: str = USER_KIND_HUMAN, *, active: bool = True, name: str | None = None) -> int:
        n = next(seq)
        async with session_factory() as db:
            user = User(username=name or f"{kind}_{n}", type=kind, is_active=active)
            db.add(user)
            await db.commit()
            return user.id

    return _make


@pytest.fixture
def make_human(make_user):
    async def _make(**kwargs) -> int:
        return await make_user(USER_KIND_HUMAN, **kwargs)

    return _make


@pytest.fixture
def make_bot(make_user):
    async def _make(**kwargs) -> int:
        return await make_user(USER_KIND_AUTOMATED, **kwargs)

    return _make


class Store:
    """Read-only helpers to inspect what the engine committed."""

    def __init__(self, session_factory):
        self._sf = session_factory

    async def counters(self, user_id: int) -> tuple[int, int, int]:
        async with self._sf() as db:
            user = await db.get(User, user_id)
            return user.total_likes, user.total_matches, user.total_rejects

    async def edge(self, user_id: int, target_id: int) -> tuple[str, bool] | None:
        async with self._sf() as db:
            row = (
                await db.execute(
                    select(UserInteraction).where(
                        UserInteraction.user_id == user_id,
                        UserInteraction.target_user_id == target_id,
                    )
                )
            ).scalar_one_or_none()
            return (row.action, row.is_mutual) if row else None

    async def chats_between(self, a: int, b: int) -> list[Chat]:
        p1, p2 = canonical_pair(a, b)
        async with self._sf() as db:
            return list(
                (
                    await db.execute(
                        select(Chat).where(Chat.participant_1_id == p1, Chat.participant_2_id == p2)
                    )
                ).scalars().all()
            )

    async def chat_count(self) -> int:
        async with self._sf() as db:
            return await db.scalar(select(func.count()).select_from(Chat))

    async def edge_count(self) -> int:
        async with self._sf() as db:
            return await db.scalar(select(func.count()).select_from(UserInteraction))

    async def block_exists(self, user_id: int, blocked_by: int) -> bool:
        async with self._sf() as db:
            row = await db.scalar(
                select(UserBlock).where(UserBlock.user_id == user_id, UserBlock.blocked_by == blocked_by)
            )
            return row is not None


@pytest.fixture
def store(session_factory) -> Store:
    return Store(session_factory)
