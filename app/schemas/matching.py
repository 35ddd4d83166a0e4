from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class TargetRequest(BaseModel):
    target_user_id: int = Field(..., gt=0)


class Envelope(BaseModel):
    success: bool = True
    message: str
    data: Any = None


class LikeData(BaseModel):
    target_user_id: int
    target_type: str
    is_match: bool
    chat_id: int | None = None


class MatchData(BaseModel):
    action: Literal["match"] = "match"
    target_user_id: int
    target_type: str
    is_new_match: bool
    chat_id: int | None = None


class RejectData(BaseModel):
    target_user_id: int
    target_type: str


class BlockData(BaseModel):
    target_user_id: int
    target_type: str
    blocked: bool
    created_at: datetime | None = None


class BlockStatusData(BaseModel):
    target_user_id: int
    blocked: bool


class MatchUser(BaseModel):
    id: int
    username: str
    type: str
    avatar: str | None = None


class MatchEntry(BaseModel):
    match_id: int
    user: MatchUser
    matched_at: datetime
    chat_id: int | None = None


class BlockedEntry(BaseModel):
    user_id: int
    username: str
    type: str
    blocked_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class MatchListData(BaseModel):
    matches: list[MatchEntry]
    pagination: Pagination


class BlockListData(BaseModel):
    blocked: list[BlockedEntry]
    pagination: Pagination
