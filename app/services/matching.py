"""
Matching engine: like / reject / match / block between two accounts.

Each public call runs in exactly one transaction. Both directed interaction
records are read under row locks before anything is decided, so the
reciprocal side of a pair is always observed in its committed state and a
match is detected once. Counters move by relative, clamped SQL arithmetic.
The "you matched" notification is sent after commit and can never undo it.
"""

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator

from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import MatchingConfig
from app.core.errors import (
    InternalError,
    InvalidArgumentError,
    MatchingError,
    NotFoundError,
    TransientError,
)
from app.db.models import (
    ACTION_LIKE,
    ACTION_MATCH,
    CHAT_STATUS_ACTIVE,
    CHAT_STATUS_BLOCKED,
    USER_KIND_AUTOMATED,
    Chat,
    User,
    UserBlock,
    UserInteraction,
)
from app.services import block as blocks
from app.services import chat as chats
from app.services.interaction import get_interaction, write_interaction
from app.services.notifier import MatchNotifier
from app.services.transitions import Transition, plan_like, plan_match, plan_reject
from app.services.user import adjust_counters, get_user

log = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03", "57014"}

LIST_FILTERS = (ACTION_MATCH, ACTION_LIKE)


@dataclass
class LikeResult:
    target_id: int
    target_kind: str
    is_match: bool
    channel_id: int | None = None


@dataclass
class MatchResult:
    target_id: int
    target_kind: str
    is_new_match: bool
    channel_id: int | None = None


@dataclass
class RejectResult:
    target_id: int
    target_kind: str
    was_match: bool = False


@dataclass
class BlockResult:
    target_id: int
    target_kind: str
    blocked: bool
    created_at: datetime | None = None


@dataclass
class MatchItem:
    match_id: int
    user_id: int
    username: str
    kind: str
    avatar: str | None
    matched_at: datetime
    channel_id: int | None = None


@dataclass
class BlockedItem:
    user_id: int
    username: str
    kind: str
    blocked_at: datetime


@dataclass
class Page:
    page: int
    limit: int
    total_items: int
    items: list = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.limit) if self.total_items else 0


def _is_transient(exc: DBAPIError) -> bool:
    if isinstance(exc, OperationalError):
        return True
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in TRANSIENT_SQLSTATES


def _check_id(value, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidArgumentError(f"Invalid {what}.")
    return value


class MatchingEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: MatchNotifier | None = None,
        config: MatchingConfig | None = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self.config = config or MatchingConfig()
        self._pending: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # transaction plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, op: str) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as db:
            try:
                async with db.begin():
                    yield db
            except MatchingError:
                raise
            except DBAPIError as exc:
                if _is_transient(exc):
                    log.warning("[MATCH] %s hit a transient store error: %s", op, exc)
                    raise TransientError("Temporarily unavailable, please retry.") from exc
                log.exception("[MATCH] %s failed", op)
                raise InternalError("Unexpected error") from exc
            except Exception as exc:
                log.exception("[MATCH] %s failed", op)
                raise InternalError("Unexpected error") from exc

    async def _lock_pair(self, db: AsyncSession, user_a: int, user_b: int) -> None:
        """
        Serialize every call touching the same unordered pair.

        Row locks cannot cover records that do not exist yet, so two first
        likes on a fresh pair would otherwise both miss each other.
        """
        if db.bind.dialect.name != "postgresql":
            return
        p1, p2 = chats.canonical_pair(user_a, user_b)
        await db.execute(text("SELECT pg_advisory_xact_lock(:p1, :p2)"), {"p1": p1, "p2": p2})

    async def _load_target(
        self,
        db: AsyncSession,
        actor_id: int,
        target_id: int,
        verb: str,
        *,
        for_update: bool = False,
        require_active: bool = True,
    ) -> User:
        _check_id(actor_id, "user id")
        _check_id(target_id, "target user id")
        if actor_id == target_id:
            raise InvalidArgumentError(f"You cannot {verb} yourself.")

        target = await get_user(db, target_id, for_update=for_update)
        if target is None or (require_active and not target.is_active):
            raise NotFoundError("Target user not found.")
        return target

    async def _apply(
        self,
        db: AsyncSession,
        actor_id: int,
        target_id: int,
        forward: UserInteraction | None,
        reverse: UserInteraction | None,
        plan: Transition,
    ) -> None:
        """Write both directed records and both counter sets for one transition."""
        if plan.forward is not None:
            await write_interaction(db, forward, actor_id, target_id, plan.forward)
        if plan.reverse is not None:
            await write_interaction(db, reverse, target_id, actor_id, plan.reverse)
        await db.flush()

        # fixed id order so crossing transactions lock account rows alike
        deltas = sorted(
            [(actor_id, plan.actor_delta), (target_id, plan.target_delta)], key=lambda d: d[0]
        )
        for user_id, delta in deltas:
            await adjust_counters(db, user_id, delta)

    async def _read_pair(self, db: AsyncSession, actor_id: int, target_id: int):
        await self._lock_pair(db, actor_id, target_id)
        forward = await get_interaction(db, actor_id, target_id, for_update=True)
        reverse = await get_interaction(db, target_id, actor_id, for_update=True)
        return forward, reverse

    async def _open_channel(self, db: AsyncSession, user_id: int, other: User) -> Chat:
        """Get or create the chat, starting it blocked for a user who blocked the bot."""
        blocked_by = ()
        if other.is_automated and await blocks.get_block(db, other.id, user_id) is not None:
            blocked_by = (user_id,)
        return await chats.get_or_create_chat_between(db, user_id, other.id, blocked_by=blocked_by)

    # ------------------------------------------------------------------
    # interactions
    # ------------------------------------------------------------------

    async def like(self, actor_id: int, target_id: int) -> LikeResult:
        async with self._transaction("like") as db:
            target = await self._load_target(db, actor_id, target_id, "like")
            forward, reverse = await self._read_pair(db, actor_id, target_id)
            previous = forward.action if forward else None
            reverse_action = reverse.action if reverse else None

            plan = plan_like(previous, reverse_action, target.is_automated)
            await self._apply(db, actor_id, target_id, forward, reverse, plan)

            channel_id = None
            if plan.is_match:
                channel = await self._open_channel(db, actor_id, target)
                channel_id = channel.id

            result = LikeResult(
                target_id=target.id,
                target_kind=target.type,
                is_match=plan.is_match,
                channel_id=channel_id,
            )

        log.info(
            "[MATCH] like actor=%s target=%s prev=%s rev=%s match=%s new=%s",
            actor_id, target_id, previous, reverse_action, plan.is_match, plan.is_new_match,
        )
        if plan.is_new_match:
            self._schedule_notification(actor_id, target_id, channel_id, result.target_kind)
        return result

    async def match(self, actor_id: int, target_id: int) -> MatchResult:
        """Match with an automated profile directly; repeating it is a no-op."""
        async with self._transaction("match") as db:
            target = await self._load_target(db, actor_id, target_id, "match with")
            if not target.is_automated:
                raise InvalidArgumentError("You can only match with automated profiles.")

            forward, reverse = await self._read_pair(db, actor_id, target_id)
            previous = forward.action if forward else None
            reverse_action = reverse.action if reverse else None

            plan = plan_match(previous, reverse_action)
            await self._apply(db, actor_id, target_id, forward, reverse, plan)
            channel = await self._open_channel(db, actor_id, target)

            result = MatchResult(
                target_id=target.id,
                target_kind=target.type,
                is_new_match=plan.is_new_match,
                channel_id=channel.id,
            )

        log.info(
            "[MATCH] match actor=%s target=%s prev=%s new=%s",
            actor_id, target_id, previous, plan.is_new_match,
        )
        if plan.is_new_match:
            self._schedule_notification(actor_id, target_id, result.channel_id, result.target_kind)
        return result

    async def reject(self, actor_id: int, target_id: int) -> RejectResult:
        async with self._transaction("reject") as db:
            target = await self._load_target(db, actor_id, target_id, "reject")
            forward, reverse = await self._read_pair(db, actor_id, target_id)
            previous = forward.action if forward else None
            reverse_action = reverse.action if reverse else None

            plan = plan_reject(previous, reverse_action)
            if not plan.is_noop:
                await self._apply(db, actor_id, target_id, forward, reverse, plan)

            result = RejectResult(
                target_id=target.id,
                target_kind=target.type,
                was_match=plan.was_match,
            )

        log.info(
            "[MATCH] reject actor=%s target=%s prev=%s rev=%s unmatched=%s",
            actor_id, target_id, previous, reverse_action, plan.was_match,
        )
        return result

    # ------------------------------------------------------------------
    # blocks
    # ------------------------------------------------------------------

    async def block(self, blocker_id: int, target_id: int) -> BlockResult:
        async with self._transaction("block") as db:
            target = await self._load_target(db, blocker_id, target_id, "block", for_update=True)
            row, created = await blocks.create_block_if_missing(db, target_id, blocker_id)

            if target.is_automated:
                channel = await chats.get_chat_between(db, blocker_id, target_id, for_update=True)
                if channel is not None:
                    chats.set_chat_status_for(channel, blocker_id, CHAT_STATUS_BLOCKED)

            result = BlockResult(
                target_id=target.id,
                target_kind=target.type,
                blocked=True,
                created_at=row.created_at,
            )

        log.info("[BLOCK] blocker=%s target=%s created=%s", blocker_id, target_id, created)
        return result

    async def unblock(self, blocker_id: int, target_id: int) -> BlockResult:
        async with self._transaction("unblock") as db:
            target = await self._load_target(
                db, blocker_id, target_id, "unblock", for_update=True, require_active=False,
            )
            removed = await blocks.delete_block(db, target_id, blocker_id)

            if removed is not None and target.is_automated:
                channel = await chats.get_chat_between(db, blocker_id, target_id, for_update=True)
                # only lift the status the block put there
                if channel is not None and channel.status_for(blocker_id) == CHAT_STATUS_BLOCKED:
                    chats.set_chat_status_for(channel, blocker_id, CHAT_STATUS_ACTIVE)

            result = BlockResult(
                target_id=target.id,
                target_kind=target.type,
                blocked=False,
                created_at=removed.created_at if removed else None,
            )

        log.info("[BLOCK] unblock blocker=%s target=%s existed=%s", blocker_id, target_id, removed is not None)
        return result

    async def is_blocked(self, viewer_id: int, target_id: int) -> bool:
        """Whether `viewer_id` has blocked `target_id`."""
        async with self._transaction("is_blocked") as db:
            return await blocks.get_block(db, target_id, viewer_id) is not None

    # ------------------------------------------------------------------
    # listings
    # ------------------------------------------------------------------

    def _page_args(self, page: int, limit: int | None) -> tuple[int, int]:
        if limit is None:
            limit = self.config.page_size
        if page < 1:
            raise InvalidArgumentError("page must be >= 1")
        if limit < 1 or limit > self.config.max_page_size:
            raise InvalidArgumentError(f"limit must be between 1 and {self.config.max_page_size}")
        return page, limit

    async def list_matches(
        self,
        user_id: int,
        filter: str = ACTION_MATCH,
        page: int = 1,
        limit: int | None = None,
    ) -> Page:
        """
        Records owned by `user_id`, newest update first.

        filter="match": mutual matches, each with its chat id (created on
        the fly for older matches that never got one).
        filter="like": likes sent that were never reciprocated.
        """
        _check_id(user_id, "user id")
        if filter not in LIST_FILTERS:
            raise InvalidArgumentError("filter must be 'match' or 'like'")
        page, limit = self._page_args(page, limit)

        want_match = filter == ACTION_MATCH
        conditions = [
            UserInteraction.user_id == user_id,
            UserInteraction.action == filter,
            UserInteraction.is_mutual.is_(want_match),
            User.is_active.is_(True),
        ]

        async with self._transaction("list_matches") as db:
            total = await db.scalar(
                select(func.count())
                .select_from(UserInteraction)
                .join(User, User.id == UserInteraction.target_user_id)
                .where(*conditions)
            ) or 0

            rows = (
                await db.execute(
                    select(UserInteraction, User)
                    .join(User, User.id == UserInteraction.target_user_id)
                    .where(*conditions)
                    .order_by(UserInteraction.updated_at.desc(), UserInteraction.id.desc())
                    .offset((page - 1) * limit)
                    .limit(limit)
                )
            ).all()

            items = []
            for edge, other in rows:
                channel_id = None
                if want_match:
                    channel = await self._open_channel(db, user_id, other)
                    channel_id = channel.id
                items.append(
                    MatchItem(
                        match_id=edge.id,
                        user_id=other.id,
                        username=other.username,
                        kind=other.type,
                        avatar=other.avatar,
                        matched_at=edge.updated_at,
                        channel_id=channel_id,
                    )
                )

        return Page(page=page, limit=limit, total_items=total, items=items)

    async def list_blocked(self, blocker_id: int, page: int = 1, limit: int | None = None) -> Page:
        _check_id(blocker_id, "user id")
        page, limit = self._page_args(page, limit)

        async with self._transaction("list_blocked") as db:
            total = await blocks.count_blocks(db, blocker_id)
            rows = (
                await db.execute(
                    select(UserBlock, User)
                    .join(User, User.id == UserBlock.user_id)
                    .where(UserBlock.blocked_by == blocker_id)
                    .order_by(UserBlock.created_at.desc(), UserBlock.id.desc())
                    .offset((page - 1) * limit)
                    .limit(limit)
                )
            ).all()

            items = [
                BlockedItem(
                    user_id=other.id,
                    username=other.username,
                    kind=other.type,
                    blocked_at=row.created_at,
                )
                for row, other in rows
            ]

        return Page(page=page, limit=limit, total_items=total, items=items)

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------

    def _schedule_notification(
        self,
        actor_id: int,
        target_id: int,
        channel_id: int | None,
        target_kind: str,
    ) -> None:
        if self._notifier is None or not self.config.notifications_enabled:
            return
        if target_kind != USER_KIND_AUTOMATED and not self.config.notify_human_matches:
            return

        async def _runner() -> None:
            try:
                await self._notifier.notify_match(actor_id, target_id, channel_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception(
                    "[MATCH] notification failed actor=%s target=%s chat=%s",
                    actor_id, target_id, channel_id,
                )

        task = asyncio.create_task(_runner())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_for_notifications(self) -> None:
        """Wait for in-flight notifications; used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
