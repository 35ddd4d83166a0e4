"""User account models."""

from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import Integer, String, Boolean, DateTime, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .push import PushSubscription


USER_KIND_HUMAN = "real"
USER_KIND_AUTOMATED = "bot"
USER_KINDS = (USER_KIND_HUMAN, USER_KIND_AUTOMATED)


class User(Base):
    """
    Account row. Human and automated profiles share the table and are told
    apart by `type`. The three `total_*` counters are owned by the matching
    engine and are only ever adjusted relatively.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    avatar: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str] = mapped_column(String(8), default=USER_KIND_HUMAN, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    status: Mapped[str] = mapped_column(String, default="CLEAN", nullable=False)

    total_likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_matches: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_rejects: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    push_subscriptions: Mapped[List["PushSubscription"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_users_type", "type"),
        Index("ix_users_is_active", "is_active"),
        CheckConstraint("type in ('real', 'bot')", name="ck_users_type"),
        CheckConstraint(
            "total_likes >= 0 and total_matches >= 0 and total_rejects >= 0",
            name="ck_users_counters_non_negative",
        ),
    )

    @property
    def is_automated(self) -> bool:
        return self.type == USER_KIND_AUTOMATED
