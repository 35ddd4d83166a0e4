from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import PushSubscription, User
from app.db.session import get_db
from app.schemas.push import SubscriptionRequest, SubscriptionResponse
from app.utils.deps import get_current_user

router = APIRouter(prefix="/push", tags=["push"])


async def _find_subscription(db: AsyncSession, user_id: int, endpoint: str) -> PushSubscription | None:
    result = await db.execute(
        select(PushSubscription).where(PushSubscription.user_id == user_id)
    )
    for sub in result.scalars().all():
        if (sub.subscription_json or {}).get("endpoint") == endpoint:
            return sub
    return None


@router.post("/subscribe", response_model=SubscriptionResponse)
async def push_subscribe(
    body: SubscriptionRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if await _find_subscription(db, user.id, body.endpoint):
        return SubscriptionResponse(status="exists")

    db.add(PushSubscription(user_id=user.id, subscription_json=body.model_dump()))
    await db.commit()
    return SubscriptionResponse(status="subscribed")


@router.post("/unsubscribe", response_model=SubscriptionResponse)
async def push_unsubscribe(
    body: SubscriptionRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    existing = await _find_subscription(db, user.id, body.endpoint)
    if not existing:
        return SubscriptionResponse(status="missing")

    await db.delete(existing)
    await db.commit()
    return SubscriptionResponse(status="unsubscribed")
