from fastapi import APIRouter, Depends, Path, Query

from app.core.config import MatchingConfig, settings
from app.db.models import User
from app.db.session import SessionLocal
from app.schemas.matching import (
    BlockData,
    BlockedEntry,
    BlockListData,
    BlockStatusData,
    Envelope,
    LikeData,
    MatchData,
    MatchEntry,
    MatchListData,
    MatchUser,
    Pagination,
    RejectData,
    TargetRequest,
)
from app.services.matching import MatchingEngine, Page
from app.services.notifier import build_notifier
from app.utils.deps import get_current_user

router = APIRouter(prefix="/users", tags=["matching"])

_engine: MatchingEngine | None = None


def get_matching_engine() -> MatchingEngine:
    global _engine
    if _engine is None:
        _engine = MatchingEngine(
            SessionLocal,
            notifier=build_notifier(settings, SessionLocal),
            config=MatchingConfig.from_settings(settings),
        )
    return _engine


def _pagination(page: Page) -> Pagination:
    return Pagination(
        page=page.page,
        limit=page.limit,
        total_items=page.total_items,
        total_pages=page.total_pages,
    )


@router.post("/like", response_model=Envelope)
async def like_user(
    body: TargetRequest,
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.like(user.id, body.target_user_id)
    return Envelope(
        message="matched" if result.is_match else "liked",
        data=LikeData(
            target_user_id=result.target_id,
            target_type=result.target_kind,
            is_match=result.is_match,
            chat_id=result.channel_id,
        ),
    )


@router.post("/reject", response_model=Envelope)
async def reject_user(
    body: TargetRequest,
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.reject(user.id, body.target_user_id)
    return Envelope(
        message="rejected",
        data=RejectData(target_user_id=result.target_id, target_type=result.target_kind),
    )


@router.post("/match", response_model=Envelope)
async def match_user(
    body: TargetRequest,
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.match(user.id, body.target_user_id)
    return Envelope(
        message="Matched." if result.is_new_match else "Already matched.",
        data=MatchData(
            target_user_id=result.target_id,
            target_type=result.target_kind,
            is_new_match=result.is_new_match,
            chat_id=result.channel_id,
        ),
    )


@router.get("/matches", response_model=Envelope)
async def list_matches(
    filter_: str = Query("match", alias="filter", pattern="^(match|like)$"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, description="Defaults to the configured page size"),
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.list_matches(user.id, filter_, page=page, limit=limit)
    items = [
        MatchEntry(
            match_id=item.match_id,
            user=MatchUser(id=item.user_id, username=item.username, type=item.kind, avatar=item.avatar),
            matched_at=item.matched_at,
            chat_id=item.channel_id,
        )
        for item in result.items
    ]
    return Envelope(
        message="All match users" if filter_ == "match" else "All liked users",
        data=MatchListData(matches=items, pagination=_pagination(result)),
    )


@router.post("/block", response_model=Envelope)
async def block_user(
    body: TargetRequest,
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.block(user.id, body.target_user_id)
    return Envelope(
        message="blocked",
        data=BlockData(
            target_user_id=result.target_id,
            target_type=result.target_kind,
            blocked=result.blocked,
            created_at=result.created_at,
        ),
    )


@router.delete("/block/{target_user_id}", response_model=Envelope)
async def unblock_user(
    target_user_id: int = Path(..., gt=0, description="ID of the user to unblock"),
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.unblock(user.id, target_user_id)
    return Envelope(
        message="unblocked",
        data=BlockData(
            target_user_id=result.target_id,
            target_type=result.target_kind,
            blocked=result.blocked,
            created_at=result.created_at,
        ),
    )


@router.get("/blocks", response_model=Envelope)
async def list_blocked(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    result = await engine.list_blocked(user.id, page=page, limit=limit)
    items = [
        BlockedEntry(user_id=i.user_id, username=i.username, type=i.kind, blocked_at=i.blocked_at)
        for i in result.items
    ]
    return Envelope(
        message="Blocked users",
        data=BlockListData(blocked=items, pagination=_pagination(result)),
    )


@router.get("/block/{target_user_id}", response_model=Envelope)
async def block_status(
    target_user_id: int = Path(..., gt=0),
    user: User = Depends(get_current_user),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    blocked = await engine.is_blocked(user.id, target_user_id)
    return Envelope(
        message="Block status",
        data=BlockStatusData(target_user_id=target_user_id, blocked=blocked),
    )
