"""
Chat API Routes

This module provides REST API endpoints for the assistant:
- Send a message and get a grounded reply
- Stream a reply as server-sent events
- List, read and delete conversations

All endpoints require authentication.
"""

import json
import logging
from contextlib import aclosing

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from reelsense.api.deps import AssistantScope, get_assistant, get_assistant_scope
from reelsense.core.auth import get_current_active_user
from reelsense.core.exceptions import ConversationNotFoundError, InvalidMessageError
from reelsense.models.user import User
from reelsense.schemas.chat import (
    ChatRequest,
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    TurnResponse,
    stream_chunk_payload,
)
from reelsense.services.rag.assistant import ChatAssistant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def format_sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


# ========================================
# Chat
# ========================================

@router.post("/chat", response_model=TurnResponse)
async def send_message(
    request: ChatRequest,
    current_user: User = Depends(get_current_active_user),
    assistant: ChatAssistant = Depends(get_assistant)
):
    """
    Send a message to the assistant.

    Starts a new conversation when ``conversationId`` is omitted.

    Returns:
        The assistant's reply with the videos it references
    """
    try:
        turn = await assistant.send(
            current_user.id,
            request.message,
            conversation_id=request.conversation_id
        )
    except InvalidMessageError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except ConversationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )

    return TurnResponse.from_record(turn)


@router.post("/chat/stream")
async def send_message_stream(
    request: ChatRequest,
    current_user: User = Depends(get_current_active_user),
    assistant_scope: AssistantScope = Depends(get_assistant_scope)
):
    """
    Send a message and stream the reply (text/event-stream).

    Each event is ``data: {json}``. Event types, in order:
    - videos: grounding videos (always sent, possibly empty)
    - content: reply text deltas
    - done: messageId and conversationId of the stored reply

    Failures before the reply starts (unknown conversation, invalid message)
    are reported as a single ``error`` event.
    """
    user_id = current_user.id

    async def event_stream():
        async with assistant_scope() as assistant:
            try:
                async with aclosing(
                    assistant.stream(user_id, request.message, request.conversation_id)
                ) as chunks:
                    async for chunk in chunks:
                        yield format_sse(stream_chunk_payload(chunk))
            except ConversationNotFoundError:
                yield format_sse({"type": "error", "error": "Conversation not found"})
            except InvalidMessageError as e:
                yield format_sse({"type": "error", "error": str(e)})
            except Exception as e:
                logger.error(f"Error streaming chat reply: {e}", exc_info=True)
                yield format_sse({"type": "error", "error": "Failed to process message"})

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ========================================
# Conversation Management
# ========================================

@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    current_user: User = Depends(get_current_active_user),
    assistant: ChatAssistant = Depends(get_assistant)
):
    """List the user's conversations, most recently active first."""
    conversations = await assistant.list_conversations(current_user.id)
    return ConversationListResponse(
        data=[ConversationResponse.model_validate(c) for c in conversations]
    )


@router.get("/conversations/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_active_user),
    assistant: ChatAssistant = Depends(get_assistant)
):
    """
    Get a conversation with all messages and their videos.

    Raises:
        HTTPException 404: Conversation not found
    """
    try:
        detail = await assistant.get_conversation(conversation_id, current_user.id)
    except ConversationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )

    return ConversationDetailResponse.from_detail(detail)


@router.delete("/conversations/{conversation_id}", response_model=MessageResponse)
async def delete_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_active_user),
    assistant: ChatAssistant = Depends(get_assistant)
):
    """
    Delete a conversation and all its messages.

    Raises:
        HTTPException 404: Conversation not found
    """
    try:
        await assistant.delete_conversation(conversation_id, current_user.id)
    except ConversationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )

    return MessageResponse(message="Conversation deleted")
