from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import UserBlock


async def get_block(
    db: AsyncSession,
    user_id: int,
    blocked_by: int,
    *,
    for_update: bool = False,
) -> UserBlock | None:
    q = select(UserBlock).where(
        UserBlock.user_id == user_id,
        UserBlock.blocked_by == blocked_by,
    )
    if for_update:
        q = q.with_for_update()
    return (await db.execute(q)).scalar_one_or_none()


async def create_block_if_missing(
    db: AsyncSession,
    user_id: int,
    blocked_by: int,
) -> tuple[UserBlock, bool]:
    """Returns the block row and whether this call created it."""
    existing = await get_block(db, user_id, blocked_by, for_update=True)
    if existing:
        return existing, False

    block = UserBlock(user_id=user_id, blocked_by=blocked_by)
    try:
        async with db.begin_nested():
            db.add(block)
    except IntegrityError:
        existing = await get_block(db, user_id, blocked_by, for_update=True)
        if existing:
            return existing, False
        raise

    return block, True


async def delete_block(db: AsyncSession, user_id: int, blocked_by: int) -> UserBlock | None:
    existing = await get_block(db, user_id, blocked_by, for_update=True)
    if existing is None:
        return None
    await db.delete(existing)
    await db.flush()
    return existing


async def count_blocks(db: AsyncSession, blocked_by: int) -> int:
    return await db.scalar(
        select(func.count()).select_from(UserBlock).where(UserBlock.blocked_by == blocked_by)
    ) or 0
