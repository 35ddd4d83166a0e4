from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import TransientError
from app.db.models import UserInteraction
from app.services.transitions import EdgeState


async def get_interaction(
    db: AsyncSession,
    user_id: int,
    target_user_id: int,
    *,
    for_update: bool = False,
) -> UserInteraction | None:
    q = select(UserInteraction).where(
        UserInteraction.user_id == user_id,
        UserInteraction.target_user_id == target_user_id,
    )
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def write_interaction(
    db: AsyncSession,
    existing: UserInteraction | None,
    user_id: int,
    target_user_id: int,
    state: EdgeState,
) -> UserInteraction:
    """
    Store `state` on the (user_id -> target_user_id) record read under lock.

    The caller's decision was computed from `existing`; if another
    transaction inserted the record in between, that decision is stale and
    the whole call has to be retried.
    """
    if existing is not None:
        existing.action = state.action
        existing.is_mutual = state.is_mutual
        return existing

    row = UserInteraction(
        user_id=user_id,
        target_user_id=target_user_id,
        action=state.action,
        is_mutual=state.is_mutual,
    )
    try:
        async with db.begin_nested():
            db.add(row)
    except IntegrityError as exc:
        raise TransientError("Interaction changed concurrently, please retry.") from exc
    return row
