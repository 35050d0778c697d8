"""
Pydantic schemas for Chat API

This module defines request/response models for the assistant endpoints.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from reelsense.schemas.discovery import CamelModel, SearchResultResponse
from reelsense.services.types import ConversationDetail, StreamChunk, TurnRecord


# ========================================
# Chat Schemas
# ========================================

class ChatRequest(CamelModel):
    """Request schema for sending a message to the assistant."""

    message: str = Field(
        description="User's message",
        min_length=1,
        max_length=2000
    )

    conversation_id: Optional[int] = Field(
        default=None,
        description="Existing conversation to continue; omit to start a new one"
    )


class TurnResponse(CamelModel):
    """One message of a conversation, with the videos it references."""

    id: int = Field(description="Message ID")
    conversation_id: int = Field(description="Conversation ID")
    role: str = Field(description="Message role: user or assistant")
    content: str = Field(description="Message content")
    videos: List[SearchResultResponse] = Field(
        default_factory=list,
        description="Videos surfaced with this message"
    )
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_record(cls, turn: TurnRecord) -> "TurnResponse":
        return cls(
            id=turn.id,
            conversation_id=turn.conversation_id,
            role=turn.role,
            content=turn.content,
            videos=[SearchResultResponse.model_validate(item) for item in turn.items],
            created_at=turn.created_at,
        )


# ========================================
# Conversation Schemas
# ========================================

class ConversationResponse(CamelModel):
    """Response schema for a conversation."""

    id: int = Field(description="Conversation ID")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class ConversationListResponse(CamelModel):
    data: List[ConversationResponse] = Field(description="Conversations, most recent first")


class ConversationDetailResponse(ConversationResponse):
    messages: List[TurnResponse] = Field(description="Messages in order")

    @classmethod
    def from_detail(cls, detail: ConversationDetail) -> "ConversationDetailResponse":
        return cls(
            id=detail.id,
            title=detail.title,
            created_at=detail.created_at,
            updated_at=detail.updated_at,
            messages=[TurnResponse.from_record(turn) for turn in detail.turns],
        )


class MessageResponse(CamelModel):
    message: str = Field(description="Status message")


# ========================================
# Streaming
# ========================================

def stream_chunk_payload(chunk: StreamChunk) -> dict[str, Any]:
    """JSON body of one server-sent event."""
    payload: dict[str, Any] = {"type": chunk.type}

    if chunk.type == "videos":
        payload["videos"] = [
            SearchResultResponse.model_validate(item).model_dump(mode="json", by_alias=True)
            for item in chunk.videos
        ]
    elif chunk.type == "content":
        payload["content"] = chunk.content
    elif chunk.type == "error":
        payload["error"] = chunk.content
    elif chunk.type == "done":
        payload["messageId"] = chunk.message_id
        payload["conversationId"] = chunk.conversation_id

    return payload
