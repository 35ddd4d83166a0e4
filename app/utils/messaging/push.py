import asyncio
import json
import logging

from pywebpush import webpush, WebPushException

from app.db.models import PushSubscription

log = logging.getLogger(__name__)


async def send_push_rich(
    subscription: PushSubscription,
    title: str,
    body: str,
    *,
    vapid_private_key: str,
    vapid_email: str | None = None,
    image_url: str | None = None,
    tag: str | None = None,
    data: dict | None = None,
):
    payload = {
        "title": title,
        "body": body,
        "tag": tag or "match",
    }

    if image_url:
        payload["image"] = image_url

    if data:
        payload["data"] = data

    try:
        await asyncio.to_thread(
            webpush,
            subscription_info=subscription.subscription_json,
            data=json.dumps(payload),
            vapid_private_key=vapid_private_key,
            vapid_claims={"sub": vapid_email or "mailto:admin@example.com"},
        )
        log.info("[push] notification sent: %s", title)
    except WebPushException as e:
        log.warning("[push] error sending notification to sub=%s: %s", subscription.id, e)
        raise
