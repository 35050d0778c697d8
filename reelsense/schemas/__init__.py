"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from reelsense.schemas.chat import (
    ChatRequest,
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    TurnResponse,
    stream_chunk_payload,
)
from reelsense.schemas.discovery import (
    CreatorResponse,
    EmbeddingEnqueuedResponse,
    EmbeddingJobResponse,
    RecommendationResponse,
    RecommendedItemResponse,
    SearchRequest,
    SearchResponse,
    SearchResultResponse,
)

__all__ = [
    # Chat
    "ChatRequest",
    "TurnResponse",
    "ConversationResponse",
    "ConversationListResponse",
    "ConversationDetailResponse",
    "MessageResponse",
    "stream_chunk_payload",
    # Search and recommendations
    "CreatorResponse",
    "SearchRequest",
    "SearchResultResponse",
    "SearchResponse",
    "RecommendedItemResponse",
    "RecommendationResponse",
    # Admin
    "EmbeddingJobResponse",
    "EmbeddingEnqueuedResponse",
]
