"""
Pydantic schemas for the search and recommendation API.

Wire format is camelCase (``videoUrl``, ``voteCount``, ...); Python code
uses the snake_case field names. Responses are validated straight from the
service records (``from_attributes``).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts either name on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ========================================
# Catalog Schemas
# ========================================

class CreatorResponse(CamelModel):
    id: int = Field(description="Creator user ID")
    username: str = Field(description="Creator handle")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")


class SearchResultResponse(CamelModel):
    """A catalog item with its similarity to the query."""

    id: int = Field(description="Content item ID")
    title: str = Field(description="Video title")
    description: Optional[str] = Field(default=None, description="Video description")
    video_url: str = Field(description="Playback URL")
    thumbnail_url: Optional[str] = Field(default=None, description="Thumbnail URL")
    duration: int = Field(description="Duration in seconds")
    vote_count: int = Field(description="Number of votes")
    created_at: datetime = Field(description="Creation timestamp")
    similarity: float = Field(description="Similarity in [0, 1]; 0.5 for keyword matches")
    creator: CreatorResponse = Field(description="Creator summary")


class RecommendedItemResponse(SearchResultResponse):
    reason: str = Field(description="Why this item was recommended")
    score: float = Field(description="Blend score used for ranking")


# ========================================
# Search
# ========================================

class SearchRequest(CamelModel):
    """Request schema for semantic search."""

    query: str = Field(
        description="Free-text search query",
        min_length=1,
        max_length=500
    )
    limit: int = Field(default=20, description="Maximum results", ge=1, le=50)
    threshold: float = Field(
        default=0.5,
        description="Minimum similarity (exclusive)",
        ge=0.0,
        le=1.0
    )


class SearchResponse(CamelModel):
    data: List[SearchResultResponse] = Field(description="Ranked results")


class RecommendationResponse(CamelModel):
    data: List[RecommendedItemResponse] = Field(description="Ranked recommendations")


# ========================================
# Admin
# ========================================

class EmbeddingJobResponse(CamelModel):
    processed: int = Field(description="Items embedded and stored")
    failed: int = Field(description="Items that could not be embedded")


class EmbeddingEnqueuedResponse(CamelModel):
    message: str = Field(description="Status message")
    item_id: int = Field(description="Content item queued for embedding")
    task_id: Optional[str] = Field(default=None, description="Celery task ID")
