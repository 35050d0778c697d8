"""
Database models.

Import everything here so Base.metadata knows every table (Alembic and
init_db rely on it).
"""

from reelsense.models.user import Follow, User
from reelsense.models.content import ContentItem, ContentStatus, Vote
from reelsense.models.conversation import Conversation, Turn, TurnRole

__all__ = [
    "User",
    "Follow",
    "ContentItem",
    "ContentStatus",
    "Vote",
    "Conversation",
    "Turn",
    "TurnRole",
]
