from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidArgumentError
from app.db.models import Chat, CHAT_STATUS_BLOCKED, CHAT_STATUSES


def canonical_pair(user_a: int, user_b: int) -> tuple[int, int]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


async def get_chat_between(
    db: AsyncSession,
    user_a: int,
    user_b: int,
    *,
    for_update: bool = False,
) -> Chat | None:
    p1, p2 = canonical_pair(user_a, user_b)
    q = select(Chat).where(Chat.participant_1_id == p1, Chat.participant_2_id == p2)
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def get_or_create_chat_between(
    db: AsyncSession,
    user_a: int,
    user_b: int,
    *,
    blocked_by: tuple[int, ...] = (),
) -> Chat:
    """
    Locked find, else create. A concurrent creator wins and its row is returned.

    A new chat starts as `blocked` on the side of each participant listed in
    `blocked_by`. An existing chat keeps whatever status it holds.
    """
    existing = await get_chat_between(db, user_a, user_b, for_update=True)
    if existing:
        return existing

    p1, p2 = canonical_pair(user_a, user_b)
    chat = Chat(participant_1_id=p1, participant_2_id=p2)
    for user_id in blocked_by:
        set_chat_status_for(chat, user_id, CHAT_STATUS_BLOCKED)
    try:
        async with db.begin_nested():
            db.add(chat)
    except IntegrityError:
        existing = await get_chat_between(db, user_a, user_b, for_update=True)
        if existing:
            return existing
        raise

    return chat


def set_chat_status_for(chat: Chat, user_id: int, status: str) -> None:
    """Change only `user_id`'s view of the chat."""
    if status not in CHAT_STATUSES:
        raise InvalidArgumentError(f"Unknown chat status '{status}'.")

    side = chat.side_of(user_id)
    if side is None:
        raise InvalidArgumentError("User is not a participant of this chat.")
    setattr(chat, f"chat_status_{side}", status)
