from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import User
from app.services.transitions import CounterDelta


async def get_user(
    db: AsyncSession,
    user_id: int,
    *,
    for_update: bool = False,
) -> User | None:
    q = select(User).where(User.id == user_id)
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


def _clamped(column, delta: int):
    # evaluated by the database against the stored value, floor at zero
    return case((column + delta < 0, 0), else_=column + delta)


async def adjust_counters(db: AsyncSession, user_id: int, delta: CounterDelta) -> None:
    values = {}
    if delta.likes:
        values["total_likes"] = _clamped(User.total_likes, delta.likes)
    if delta.matches:
        values["total_matches"] = _clamped(User.total_matches, delta.matches)
    if delta.rejects:
        values["total_rejects"] = _clamped(User.total_rejects, delta.rejects)
    if not values:
        return

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
