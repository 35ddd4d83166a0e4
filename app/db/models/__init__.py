"""
SQLAlchemy database models.

Models are organized by domain:
- base: Base declarative class
- user: Account rows (human and automated) with matching counters
- interaction: Directed like / reject / match records
- block: Block registry
- chat: Conversation channels, one per unordered pair
- push: Web push subscriptions used for match notifications

Import any model from this module:
    from app.db.models import User, UserInteraction, Chat
"""

# Base class (must be imported first)
from .base import Base

# Accounts
from .user import User, USER_KIND_HUMAN, USER_KIND_AUTOMATED, USER_KINDS

# Interaction ledger
from .interaction import (
    UserInteraction,
    ACTION_LIKE,
    ACTION_REJECT,
    ACTION_MATCH,
    INTERACTION_ACTIONS,
)

# Block registry
from .block import UserBlock

# Conversation channels
from .chat import (
    Chat,
    CHAT_STATUS_ACTIVE,
    CHAT_STATUS_BLOCKED,
    CHAT_STATUS_DELETED,
    CHAT_STATUSES,
)

# Push delivery
from .push import PushSubscription

__all__ = [
    # Base
    "Base",
    # Accounts
    "User",
    "USER_KIND_HUMAN",
    "USER_KIND_AUTOMATED",
    "USER_KINDS",
    # Ledger
    "UserInteraction",
    "ACTION_LIKE",
    "ACTION_REJECT",
    "ACTION_MATCH",
    "INTERACTION_ACTIONS",
    # Blocks
    "UserBlock",
    # Chat
    "Chat",
    "CHAT_STATUS_ACTIVE",
    "CHAT_STATUS_BLOCKED",
    "CHAT_STATUS_DELETED",
    "CHAT_STATUSES",
    # Push
    "PushSubscription",
]
