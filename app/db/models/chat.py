"""Conversation channel between two accounts."""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


CHAT_STATUS_ACTIVE = "active"
CHAT_STATUS_BLOCKED = "blocked"
CHAT_STATUS_DELETED = "deleted"
CHAT_STATUSES = (CHAT_STATUS_ACTIVE, CHAT_STATUS_BLOCKED, CHAT_STATUS_DELETED)


class Chat(Base):
    """
    One row per unordered pair of accounts. `participant_1_id` is always the
    smaller id, so the pair maps to a single row whatever the call order.
    Every per-side column is suffixed `_p1` / `_p2` accordingly.
    """

    __tablename__ = "chats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    participant_1_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    participant_2_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    last_message_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_message_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    unread_count_p1: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unread_count_p2: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_pin_p1: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_pin_p2: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    chat_status_p1: Mapped[str] = mapped_column(String(8), default=CHAT_STATUS_ACTIVE, nullable=False)
    chat_status_p2: Mapped[str] = mapped_column(String(8), default=CHAT_STATUS_ACTIVE, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("uq_chat_participants", "participant_1_id", "participant_2_id", unique=True),
        CheckConstraint("participant_1_id < participant_2_id", name="ck_chats_canonical_pair"),
    )

    def side_of(self, user_id: int) -> str | None:
        if user_id == self.participant_1_id:
            return "p1"
        if user_id == self.participant_2_id:
            return "p2"
        return None

    def status_for(self, user_id: int) -> str | None:
        side = self.side_of(user_id)
        return getattr(self, f"chat_status_{side}") if side else None
