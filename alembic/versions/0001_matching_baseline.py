"""Matching baseline: users, interactions, blocks, chats, push subscriptions

Revision ID: 0001_matching_baseline
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_matching_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create matching tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("avatar", sa.String(), nullable=True),
        sa.Column("type", sa.String(length=8), nullable=False, server_default="real"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(), nullable=False, server_default="CLEAN"),
        sa.Column("total_likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_matches", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_rejects", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("username"),
        sa.CheckConstraint("type in ('real', 'bot')", name="ck_users_type"),
        sa.CheckConstraint(
            "total_likes >= 0 and total_matches >= 0 and total_rejects >= 0",
            name="ck_users_counters_non_negative",
        ),
    )
    op.create_index("ix_users_type", "users", ["type"])
    op.create_index("ix_users_is_active", "users", ["is_active"])

    op.create_table(
        "user_interactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("target_user_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=8), nullable=False),
        sa.Column("is_mutual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("action in ('like', 'reject', 'match')", name="ck_interaction_action"),
        sa.CheckConstraint("action <> 'match' or is_mutual", name="ck_interaction_match_is_mutual"),
    )
    op.create_index(
        "uq_interaction_user_target",
        "user_interactions",
        ["user_id", "target_user_id"],
        unique=True,
    )
    op.create_index("ix_user_interactions_target_user_id", "user_interactions", ["target_user_id"])
    op.create_index("ix_interaction_user_action", "user_interactions", ["user_id", "action", "is_mutual"])

    op.create_table(
        "user_blocks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("blocked_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["blocked_by"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("uq_user_block", "user_blocks", ["user_id", "blocked_by"], unique=True)
    op.create_index("ix_user_blocks_user_id", "user_blocks", ["user_id"])
    op.create_index("ix_user_blocks_blocked_by", "user_blocks", ["blocked_by"])

    op.create_table(
        "chats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("participant_1_id", sa.Integer(), nullable=False),
        sa.Column("participant_2_id", sa.Integer(), nullable=False),
        sa.Column("last_message_id", sa.Integer(), nullable=True),
        sa.Column("last_message_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unread_count_p1", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unread_count_p2", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_pin_p1", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_pin_p2", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chat_status_p1", sa.String(length=8), nullable=False, server_default="active"),
        sa.Column("chat_status_p2", sa.String(length=8), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["participant_1_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant_2_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("participant_1_id < participant_2_id", name="ck_chats_canonical_pair"),
    )
    op.create_index("uq_chat_participants", "chats", ["participant_1_id", "participant_2_id"], unique=True)
    op.create_index("ix_chats_participant_2_id", "chats", ["participant_2_id"])

    op.create_table(
        "push_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("subscription_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"])


def downgrade() -> None:
    """Drop matching tables."""
    op.drop_index("ix_push_subscriptions_user_id", table_name="push_subscriptions")
    op.drop_table("push_subscriptions")
    op.drop_index("ix_chats_participant_2_id", table_name="chats")
    op.drop_index("uq_chat_participants", table_name="chats")
    op.drop_table("chats")
    op.drop_index("ix_user_blocks_blocked_by", table_name="user_blocks")
    op.drop_index("ix_user_blocks_user_id", table_name="user_blocks")
    op.drop_index("uq_user_block", table_name="user_blocks")
    op.drop_table("user_blocks")
    op.drop_index("ix_interaction_user_action", table_name="user_interactions")
    op.drop_index("ix_user_interactions_target_user_id", table_name="user_interactions")
    op.drop_index("uq_interaction_user_target", table_name="user_interactions")
    op.drop_table("user_interactions")
    op.drop_index("ix_users_is_active", table_name="users")
    op.drop_index("ix_users_type", table_name="users")
    op.drop_table("users")
