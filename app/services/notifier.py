"""Post-commit "you matched" delivery."""

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.db.models import PushSubscription, User
from app.utils.messaging.push import send_push_rich

log = logging.getLogger(__name__)


class MatchNotifier(Protocol):
    async def notify_match(self, actor_id: int, target_id: int, channel_id: int | None) -> None:
        ...


class NullNotifier:
    async def notify_match(self, actor_id: int, target_id: int, channel_id: int | None) -> None:
        log.debug("[notify] disabled, dropping match actor=%s target=%s", actor_id, target_id)


class PushMatchNotifier:
    """
    Web push to the human side of a fresh match.

    For an automated target the actor is told; for a human pair the target
    is told, since the actor already sees the match in its own response.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vapid_private_key: str,
        vapid_email: str | None = None,
    ):
        self._session_factory = session_factory
        self._vapid_private_key = vapid_private_key
        self._vapid_email = vapid_email

    async def notify_match(self, actor_id: int, target_id: int, channel_id: int | None) -> None:
        async with self._session_factory() as db:
            actor = await db.get(User, actor_id)
            target = await db.get(User, target_id)
            if actor is None or target is None:
                log.warning("[notify] match parties gone actor=%s target=%s", actor_id, target_id)
                return

            recipient, other = (actor, target) if target.is_automated else (target, actor)
            subs = (
                await db.execute(
                    select(PushSubscription).where(PushSubscription.user_id == recipient.id)
                )
            ).scalars().all()

        if not subs:
            return

        name = (other.username or "").strip() or "someone"
        data = {
            "event": "BOT_MATCH" if other.is_automated else "MATCH",
            "chat_id": channel_id,
            "target_user_id": other.id,
            "target_type": other.type,
            "target_name": name,
        }
        for sub in subs:
            await send_push_rich(
                sub,
                "It's a Match!",
                f"You matched with {name}. Start chatting now!",
                vapid_private_key=self._vapid_private_key,
                vapid_email=self._vapid_email,
                image_url=other.avatar,
                tag=f"match-{other.id}",
                data=data,
            )


def build_notifier(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> MatchNotifier:
    if not settings.VAPID_PRIVATE_KEY:
        return NullNotifier()
    return PushMatchNotifier(session_factory, settings.VAPID_PRIVATE_KEY, settings.VAPID_EMAIL)
