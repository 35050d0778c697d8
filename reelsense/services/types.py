"""
Service-level records.

These are the shapes that flow between the store, the search service, the
recommendation blender and the assistant. They are plain frozen
dataclasses so they can be produced by SQL rows or by test fakes alike,
and never carry a live database session.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional


# Placeholder similarity for results produced by the lexical fallback.
LEXICAL_SIMILARITY = 0.5


@dataclass(frozen=True)
class CreatorSummary:
    id: int
    username: str
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class CatalogItem:
    """Read projection of a ContentItem, with creator and vote count."""

    id: int
    title: str
    description: Optional[str]
    video_url: str
    thumbnail_url: Optional[str]
    duration: int
    creator: CreatorSummary
    vote_count: int
    created_at: datetime

    def with_similarity(self, similarity: float) -> "SearchResult":
        return SearchResult(
            id=self.id,
            title=self.title,
            description=self.description,
            video_url=self.video_url,
            thumbnail_url=self.thumbnail_url,
            duration=self.duration,
            creator=self.creator,
            vote_count=self.vote_count,
            created_at=self.created_at,
            similarity=similarity,
        )


@dataclass(frozen=True)
class SearchResult(CatalogItem):
    similarity: float = 0.0

    def recommended(self, reason: str, score: float) -> "RecommendedItem":
        return RecommendedItem(
            id=self.id,
            title=self.title,
            description=self.description,
            video_url=self.video_url,
            thumbnail_url=self.thumbnail_url,
            duration=self.duration,
            creator=self.creator,
            vote_count=self.vote_count,
            created_at=self.created_at,
            similarity=self.similarity,
            reason=reason,
            score=score,
        )


@dataclass(frozen=True)
class RecommendedItem(SearchResult):
    reason: str = ""
    score: float = 0.0


@dataclass(frozen=True)
class EmbeddingJobResult:
    processed: int = 0
    failed: int = 0

    def __add__(self, other: "EmbeddingJobResult") -> "EmbeddingJobResult":
        return EmbeddingJobResult(
            processed=self.processed + other.processed,
            failed=self.failed + other.failed,
        )


@dataclass(frozen=True)
class TurnRecord:
    """A persisted turn together with the catalog items it references."""

    id: int
    conversation_id: int
    role: str
    content: str
    created_at: datetime
    content_item_ids: tuple[int, ...] = ()
    items: tuple[SearchResult, ...] = ()


@dataclass(frozen=True)
class ConversationSummary:
    id: int
    title: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ConversationDetail(ConversationSummary):
    turns: tuple[TurnRecord, ...] = field(default_factory=tuple)


StreamChunkType = Literal["videos", "content", "done", "error"]


@dataclass(frozen=True)
class StreamChunk:
    """
    One event of a streamed assistant reply.

    ``videos`` carries the grounding items, ``content`` a text delta,
    ``done`` the persisted message id, ``error`` a user-facing message.
    """

    type: StreamChunkType
    content: Optional[str] = None
    videos: tuple[SearchResult, ...] = ()
    message_id: Optional[int] = None
    conversation_id: Optional[int] = None

