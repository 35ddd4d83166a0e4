"""Directed like/reject/match records between two accounts."""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


ACTION_LIKE = "like"
ACTION_REJECT = "reject"
ACTION_MATCH = "match"
INTERACTION_ACTIONS = (ACTION_LIKE, ACTION_REJECT, ACTION_MATCH)


class UserInteraction(Base):
    """
    Current relationship of `user_id` towards `target_user_id`.

    One row per ordered pair, mutated in place and never deleted. A mutual
    match is two rows, one per direction, both `action="match"` with
    `is_mutual=True`.
    """

    __tablename__ = "user_interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    target_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    action: Mapped[str] = mapped_column(String(8), nullable=False)
    is_mutual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("uq_interaction_user_target", "user_id", "target_user_id", unique=True),
        Index("ix_interaction_user_action", "user_id", "action", "is_mutual"),
        CheckConstraint("action in ('like', 'reject', 'match')", name="ck_interaction_action"),
        CheckConstraint("action <> 'match' or is_mutual", name="ck_interaction_match_is_mutual"),
    )
