"""
Conversation Service for the Chat Assistant

This module persists assistant conversations:
- Create, look up, list and delete conversations (scoped to their owner)
- Append turns (user or assistant) with their linked content item ids
- Read the most recent turns as generation history

Turns are append-only. Adding a turn and touching the parent's
``updated_at`` happen in one commit, so listing by recency always reflects
the latest persisted turn.

Reads return service records (TurnRecord, ConversationSummary); ORM rows
never leave this module.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.db.base import utcnow
from reelsense.models.conversation import Conversation, Turn, TurnRole
from reelsense.services.types import ConversationSummary, TurnRecord

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50


def to_summary(conversation: Conversation) -> ConversationSummary:
    return ConversationSummary(
        id=conversation.id,
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


def to_turn_record(turn: Turn) -> TurnRecord:
    return TurnRecord(
        id=turn.id,
        conversation_id=turn.conversation_id,
        role=TurnRole(turn.role).value,
        content=turn.content,
        created_at=turn.created_at,
        content_item_ids=tuple(turn.content_item_ids or ()),
    )


class ConversationService:
    """
    Service for managing assistant conversations.

    Usage:
    ------
    service = ConversationService(db)

    conversation = await service.create_conversation(user_id=123, title="Cooking videos")

    await service.add_turn(conversation.id, TurnRole.USER, "Show me pasta recipes")
    await service.add_turn(conversation.id, TurnRole.ASSISTANT, "Here are a few...", [4, 9])

    history = await service.recent_turns(conversation.id, limit=10)
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the conversation service.

        Args:
            db: Database session
        """
        self.db = db

    async def create_conversation(
        self,
        user_id: int,
        title: Optional[str] = None
    ) -> ConversationSummary:
        """
        Create a new conversation.

        Args:
            user_id: Owning user
            title: Conversation title (truncated to 50 characters)
        """
        conversation = Conversation(
            user_id=user_id,
            title=title[:TITLE_LENGTH] if title else None,
        )

        self.db.add(conversation)
        await self.db.commit()
        await self.db.refresh(conversation)

        logger.info(f"Created conversation {conversation.id} for user {user_id}")

        return to_summary(conversation)

    async def get_conversation(
        self,
        conversation_id: int,
        user_id: int
    ) -> Optional[ConversationSummary]:
        """
        Get a conversation owned by ``user_id``.

        Returns:
            The conversation, or None if it does not exist or belongs to
            someone else
        """
        result = await self.db.execute(
            select(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.user_id == user_id,
            )
        )
        conversation = result.scalar_one_or_none()

        return to_summary(conversation) if conversation else None

    async def list_conversations(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0
    ) -> list[ConversationSummary]:
        """List a user's conversations, most recently active first."""
        query = select(Conversation).where(
            Conversation.user_id == user_id
        ).order_by(
            desc(Conversation.updated_at),
            desc(Conversation.id),
        ).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return [to_summary(conversation) for conversation in result.scalars().all()]

    async def delete_conversation(
        self,
        conversation_id: int,
        user_id: int
    ) -> bool:
        """
        Delete a conversation and all its turns.

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            delete(Conversation).where(
                Conversation.id == conversation_id,
                Conversation.user_id == user_id,
            )
        )
        await self.db.commit()

        if result.rowcount == 0:
            logger.warning(f"Conversation {conversation_id} not found for deletion")
            return False

        logger.info(f"Deleted conversation {conversation_id}")
        return True

    async def add_turn(
        self,
        conversation_id: int,
        role: TurnRole,
        content: str,
        content_item_ids: Sequence[int] = ()
    ) -> TurnRecord:
        """
        Append a turn and touch the conversation, in one commit.

        Args:
            conversation_id: Parent conversation
            role: USER or ASSISTANT
            content: Message text
            content_item_ids: Linked items, in display order
        """
        turn = Turn(
            conversation_id=conversation_id,
            role=role,
            content=content,
            content_item_ids=list(content_item_ids),
        )
        self.db.add(turn)

        try:
            await self.db.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(turn)

        logger.debug(f"Added {role.value} turn to conversation {conversation_id}")

        return to_turn_record(turn)

    async def recent_turns(
        self,
        conversation_id: int,
        limit: int = 10
    ) -> list[TurnRecord]:
        """The last ``limit`` turns, oldest first."""
        result = await self.db.execute(
            select(Turn)
            .where(Turn.conversation_id == conversation_id)
            .order_by(desc(Turn.created_at), desc(Turn.id))
            .limit(limit)
        )
        turns = list(result.scalars().all())
        turns.reverse()
        return [to_turn_record(turn) for turn in turns]

    async def list_turns(self, conversation_id: int) -> list[TurnRecord]:
        """All turns of a conversation in (created_at, id) order."""
        result = await self.db.execute(
            select(Turn)
            .where(Turn.conversation_id == conversation_id)
            .order_by(Turn.created_at, Turn.id)
        )
        return [to_turn_record(turn) for turn in result.scalars().all()]
