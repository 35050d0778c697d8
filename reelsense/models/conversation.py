"""
Conversation Models

This module contains the chat assistant's persistence models.

Models Included:
----------------
1. TurnRole (Enum) - Who produced a turn
2. Conversation - A user's chat session with the assistant
3. Turn - One message (user or assistant) within a conversation

Database Tables:
----------------
- conversations: Chat sessions
- conversation_turns: Append-only messages, each carrying the ordered list
  of content item ids surfaced for it

Relationships:
--------------
- User (1) ←→ (Many) Conversation
- Conversation (1) ←→ (Many) Turn   (delete conversation → delete turns)

Invariants:
-----------
- Turns are never edited or deleted individually; a new turn is always an
  INSERT. The only mutation on the parent is touching ``updated_at``.
- Turn order is (created_at, id); ids break ties between turns written in
  the same instant.
"""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsense.db.base import BaseModel, String255

if TYPE_CHECKING:
    from reelsense.models.user import User


# ================================
# Enums
# ================================

class TurnRole(str, enum.Enum):
    """
    Role of a turn in a conversation.

    Follows the usual chat-API convention; "system" messages exist only in
    the prompt we build for the provider and are never persisted.
    """

    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


# ================================
# Conversation Model
# ================================

class Conversation(BaseModel):
    """
    A chat session between one user and the assistant.

    Created implicitly when a user sends a message without a conversation
    id; titled with the first 50 characters of that message.
    """

    __tablename__ = "conversations"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning user"
    )

    title: Mapped[str | None] = mapped_column(
        String255,
        nullable=True,
        comment="Conversation title (first message excerpt)"
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="conversations",
        lazy="noload",
    )

    turns: Mapped[list["Turn"]] = relationship(
        "Turn",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
        order_by="[Turn.created_at, Turn.id]",
    )

    __table_args__ = (
        Index("ix_conversations_user_updated", "user_id", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"Conversation(id={self.id}, user_id={self.user_id}, title={self.title!r})"


# ================================
# Turn Model
# ================================

class Turn(BaseModel):
    """
    One message in a conversation.

    USER turns hold the raw user text and no linked items.
    ASSISTANT turns hold the generated reply (or the apology, if generation
    failed) and the ids of the grounding items, in retrieval order.
    """

    __tablename__ = "conversation_turns"

    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Parent conversation"
    )

    role: Mapped[TurnRole] = mapped_column(
        Enum(
            TurnRole,
            name="turn_role",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        comment="user or assistant"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Message text"
    )

    content_item_ids: Mapped[list[int]] = mapped_column(
        ARRAY(Integer),
        nullable=False,
        default=list,
        comment="Ordered ids of content items surfaced for this turn"
    )

    conversation: Mapped["Conversation"] = relationship(
        "Conversation",
        back_populates="turns",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_conversation_turns_order", "conversation_id", "created_at", "id"),
    )

    def __repr__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return (
            f"Turn(id={self.id}, conversation_id={self.conversation_id}, "
            f"role={self.role.value}, content='{preview}')"
        )

    @property
    def is_user_turn(self) -> bool:
        return self.role == TurnRole.USER

    @property
    def is_assistant_turn(self) -> bool:
        return self.role == TurnRole.ASSISTANT
