"""
Conversational Assistant

Answers chat messages with replies grounded in catalog items.

Turn lifecycle (logged at every transition):

    RECEIVED → GROUNDING → GENERATING → PERSISTED

1. RECEIVED: validate the message, resolve or create the conversation,
   read the recent history, persist the user turn
2. GROUNDING: semantic search for related items (limit 5, threshold 0.3)
3. GENERATING: system preamble + history + grounding note + message go to
   the generation provider
4. PERSISTED: the assistant turn is stored with the grounding item ids

There is no failed state. If generation is unavailable, errors or times
out, the assistant turn carries APOLOGY_MESSAGE instead, so every accepted
user turn is answered.

Streaming emits ``videos`` first, then ``content`` deltas, then ``done``
once the assistant turn is stored. Nothing is written after the consumer
stops listening: closing the stream before ``done`` leaves only the user
turn behind.
"""

import enum
import logging
from contextlib import aclosing
from dataclasses import dataclass, replace
from typing import AsyncIterator, Optional

from reelsense.core.config import settings
from reelsense.core.exceptions import (
    ConversationNotFoundError,
    InvalidMessageError,
    ProviderNotConfiguredError,
)
from reelsense.models.conversation import TurnRole
from reelsense.services.content_store import ContentStore
from reelsense.services.rag.conversation_service import ConversationService
from reelsense.services.rag.generator import ChatGenerator, ChatMessage
from reelsense.services.search.semantic_search import SemanticSearchService
from reelsense.services.types import (
    ConversationDetail,
    ConversationSummary,
    SearchResult,
    StreamChunk,
    TurnRecord,
)

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are ReelSense's assistant, helping people discover short videos on the platform.

Your role:
- Help users find videos based on their mood, interests, or specific requests
- Point out trending or popular videos when that helps
- Answer questions about creators and their content on the platform
- Be enthusiastic about the content while staying helpful and concise

Guidelines:
- When recommending videos, describe them briefly but engagingly
- Only recommend videos that appear in the context you are given
- If users ask about something unrelated to the platform, politely redirect them
- Keep responses concise and conversational

Relevant videos from the catalog will be provided in the conversation when there are any."""

APOLOGY_MESSAGE = (
    "Sorry, I'm having trouble answering right now. Please try again in a moment."
)

GROUNDING_HEADER = (
    "Here are some relevant videos from our platform that might help answer the user's question:"
)


class TurnState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    GROUNDING = "GROUNDING"
    GENERATING = "GENERATING"
    PERSISTED = "PERSISTED"


@dataclass(frozen=True)
class PreparedTurn:
    conversation_id: int
    messages: list[ChatMessage]
    grounding: tuple[SearchResult, ...]


def build_messages(
    history: list[TurnRecord],
    grounding: tuple[SearchResult, ...],
    text: str,
) -> list[ChatMessage]:
    """System preamble, prior turns, grounding note (if any), then the new message."""
    messages: list[ChatMessage] = [{"role": "system", "content": SYSTEM_PROMPT}]

    for turn in history:
        messages.append({"role": turn.role, "content": turn.content})

    if grounding:
        lines = [
            f'- "{item.title}" by {item.creator.username} ({item.vote_count} votes)'
            for item in grounding
        ]
        messages.append({"role": "system", "content": "\n".join([GROUNDING_HEADER, *lines])})

    messages.append({"role": "user", "content": text})
    return messages


def validate_message(text: str) -> str:
    if text is None or not text.strip():
        raise InvalidMessageError("Message must not be empty")
    if len(text) > settings.CHAT_MESSAGE_MAX_LENGTH:
        raise InvalidMessageError(
            f"Message must be at most {settings.CHAT_MESSAGE_MAX_LENGTH} characters"
        )
    return text


class ChatAssistant:
    """
    Grounded chat over the catalog.

    Usage:
    ------
    assistant = ChatAssistant(conversations, search, generator, store)

    reply = await assistant.send(user_id=7, text="funny cat videos?")

    async with contextlib.aclosing(assistant.stream(7, "more like that", reply.conversation_id)) as chunks:
        async for chunk in chunks:
            ...
    """

    def __init__(
        self,
        conversations: ConversationService,
        search: SemanticSearchService,
        generator: ChatGenerator,
        store: ContentStore,
    ):
        self.conversations = conversations
        self.search = search
        self.generator = generator
        self.store = store

    def _log_state(self, state: TurnState, conversation_id: int, **details) -> None:
        extra = "".join(f", {key}={value}" for key, value in details.items())
        logger.info(f"Turn {state.value}: conversation={conversation_id}{extra}")

    async def _prepare(
        self,
        user_id: int,
        text: str,
        conversation_id: Optional[int],
    ) -> PreparedTurn:
        text = validate_message(text)

        if conversation_id is not None:
            conversation = await self.conversations.get_conversation(conversation_id, user_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
        else:
            conversation = await self.conversations.create_conversation(user_id, title=text)

        history = await self.conversations.recent_turns(conversation.id, settings.CHAT_HISTORY_TURNS)
        await self.conversations.add_turn(conversation.id, TurnRole.USER, text)
        self._log_state(TurnState.RECEIVED, conversation.id, history=len(history))

        grounding = tuple(
            await self.search.search(
                text,
                limit=settings.CHAT_GROUNDING_LIMIT,
                threshold=settings.CHAT_GROUNDING_THRESHOLD,
            )
        )
        self._log_state(TurnState.GROUNDING, conversation.id, items=len(grounding))

        return PreparedTurn(
            conversation_id=conversation.id,
            messages=build_messages(history, grounding, text),
            grounding=grounding,
        )

    async def _persist_reply(self, prepared: PreparedTurn, content: str) -> TurnRecord:
        turn = await self.conversations.add_turn(
            prepared.conversation_id,
            TurnRole.ASSISTANT,
            content,
            [item.id for item in prepared.grounding],
        )
        self._log_state(TurnState.PERSISTED, prepared.conversation_id, turn=turn.id)
        return turn

    async def send(
        self,
        user_id: int,
        text: str,
        conversation_id: Optional[int] = None,
    ) -> TurnRecord:
        """
        Answer one message.

        Returns:
            The stored assistant turn, with its grounding items attached

        Raises:
            InvalidMessageError: Blank or overlong message
            ConversationNotFoundError: Unknown conversation (or not the user's)
        """
        prepared = await self._prepare(user_id, text, conversation_id)

        self._log_state(TurnState.GENERATING, prepared.conversation_id)
        try:
            content = await self.generator.complete(prepared.messages)
        except ProviderNotConfiguredError:
            logger.warning("Generation provider not configured; replying with apology")
            content = APOLOGY_MESSAGE
        except Exception as e:
            logger.error(f"Generation failed for conversation {prepared.conversation_id}: {e}")
            content = APOLOGY_MESSAGE

        turn = await self._persist_reply(prepared, content)
        return replace(turn, items=prepared.grounding)

    async def stream(
        self,
        user_id: int,
        text: str,
        conversation_id: Optional[int] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Answer one message as a stream of chunks.

        Raises (before the first chunk):
            InvalidMessageError: Blank or overlong message
            ConversationNotFoundError: Unknown conversation (or not the user's)
        """
        prepared = await self._prepare(user_id, text, conversation_id)

        yield StreamChunk(type="videos", videos=prepared.grounding)

        self._log_state(TurnState.GENERATING, prepared.conversation_id)
        parts: list[str] = []
        failed = False
        try:
            async with aclosing(self.generator.stream_complete(prepared.messages)) as deltas:
                async for delta in deltas:
                    if not delta:
                        continue
                    parts.append(delta)
                    yield StreamChunk(type="content", content=delta)
        except ProviderNotConfiguredError:
            logger.warning("Generation provider not configured; replying with apology")
            failed = True
        except Exception as e:
            logger.error(f"Streaming failed for conversation {prepared.conversation_id}: {e}")
            failed = True

        if failed or not parts:
            content = APOLOGY_MESSAGE
            yield StreamChunk(type="content", content=APOLOGY_MESSAGE)
        else:
            content = "".join(parts)

        turn = await self._persist_reply(prepared, content)

        yield StreamChunk(
            type="done",
            message_id=turn.id,
            conversation_id=prepared.conversation_id,
        )

    # ================================
    # Conversation management
    # ================================

    async def list_conversations(self, user_id: int) -> list[ConversationSummary]:
        return await self.conversations.list_conversations(user_id)

    async def get_conversation(self, conversation_id: int, user_id: int) -> ConversationDetail:
        """
        A conversation with every turn and the items each turn linked.

        Items that no longer exist (or are no longer approved) are skipped.

        Raises:
            ConversationNotFoundError: Unknown conversation (or not the user's)
        """
        conversation = await self.conversations.get_conversation(conversation_id, user_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        turns = await self.conversations.list_turns(conversation_id)

        linked_ids = list(dict.fromkeys(
            item_id for turn in turns for item_id in turn.content_item_ids
        ))
        items = {item.id: item for item in await self.store.get_items(linked_ids)}

        resolved = tuple(
            replace(
                turn,
                items=tuple(
                    items[item_id].with_similarity(1.0)
                    for item_id in turn.content_item_ids
                    if item_id in items
                ),
            )
            for turn in turns
        )

        return ConversationDetail(
            id=conversation.id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            turns=resolved,
        )

    async def delete_conversation(self, conversation_id: int, user_id: int) -> None:
        """
        Raises:
            ConversationNotFoundError: Unknown conversation (or not the user's)
        """
        deleted = await self.conversations.delete_conversation(conversation_id, user_id)
        if not deleted:
            raise ConversationNotFoundError(conversation_id)
