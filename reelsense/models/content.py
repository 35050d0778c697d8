"""
Content Models

This module contains the catalog models read by search, recommendations
and the chat assistant.

Models Included:
----------------
1. ContentStatus (Enum) - Moderation status of a content item
2. ContentItem - A short-form video in the catalog (with its embedding)
3. Vote - A user's endorsement of a content item

Database Tables:
----------------
- content_items: Catalog entries. Rows are created by the upload flow; this
  service only writes ``embedding`` and ``embedding_updated_at``.
- votes: Endorsement edges (user → content item)

Embeddings:
-----------
``embedding`` is a pgvector column. NULL means "not yet indexed": the item
is invisible to vector queries but still reachable through the lexical
fallback. Similarity is measured with the cosine operator ``<=>``:

    similarity = 1 - (embedding <=> query_vector)

An HNSW index with ``vector_cosine_ops`` (created by the migration) keeps
nearest-neighbour queries fast.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsense.core.config import settings
from reelsense.db.base import BaseModel, String255, String1000

if TYPE_CHECKING:
    from reelsense.models.user import User


def embedding_input(title: str, description: str | None) -> str:
    """Title alone, or "title - description" when there is a description."""
    if description:
        return f"{title} - {description}"
    return title


# ================================
# Enums
# ================================

class ContentStatus(str, enum.Enum):
    """
    Moderation status of a content item.

    Only APPROVED items are ever returned by search or recommendations.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


# ================================
# ContentItem Model
# ================================

class ContentItem(BaseModel):
    """
    A short-form video in the catalog.

    Embedding lifecycle:
    --------------------
    1. Upload flow creates the row (embedding NULL)
    2. Celery task ``embedding.embed_content_item`` fills ``embedding`` and
       ``embedding_updated_at`` in a single UPDATE
    3. Edits of title/description re-enqueue the task
    4. The periodic sweep picks up anything that slipped through
    """

    __tablename__ = "content_items"

    creator_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to the creating user"
    )

    title: Mapped[str] = mapped_column(
        String255,
        nullable=False,
        comment="Video title"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Optional free-text description"
    )

    video_url: Mapped[str] = mapped_column(
        String1000,
        nullable=False,
        comment="Playback URL"
    )

    thumbnail_url: Mapped[str | None] = mapped_column(
        String1000,
        nullable=True,
        comment="Thumbnail image URL"
    )

    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Duration in seconds"
    )

    status: Mapped[ContentStatus] = mapped_column(
        Enum(
            ContentStatus,
            name="content_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ContentStatus.PENDING,
        index=True,
        comment="Moderation status"
    )

    embedding = mapped_column(
        Vector(settings.EMBEDDING_DIMENSION),
        nullable=True,
        comment="Semantic embedding of title + description"
    )

    embedding_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the embedding was last written (UTC)"
    )

    creator: Mapped["User"] = relationship(
        "User",
        back_populates="content_items",
        lazy="joined",
    )

    votes: Mapped[list["Vote"]] = relationship(
        "Vote",
        back_populates="content_item",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    __table_args__ = (
        Index(
            "ix_content_items_embedding_hnsw",
            "embedding",
            postgresql_using="hnsw",
            postgresql_with={"m": 16, "ef_construction": 64},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    def __repr__(self) -> str:
        return (
            f"ContentItem(id={self.id}, title='{self.title[:30]}', "
            f"status={self.status.value})"
        )

    @property
    def is_approved(self) -> bool:
        return self.status == ContentStatus.APPROVED

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    @property
    def embedding_text(self) -> str:
        """Text submitted to the embedding provider."""
        return embedding_input(self.title, self.description)


# ================================
# Vote Model
# ================================

class Vote(BaseModel):
    """
    A user's endorsement of a content item.

    The number of votes is the item's engagement counter; the most recent
    votes of a user seed the "similar to your history" signal.
    """

    __tablename__ = "votes"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Voting user"
    )

    content_item_id: Mapped[int] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Endorsed content item"
    )

    content_item: Mapped["ContentItem"] = relationship(
        "ContentItem",
        back_populates="votes",
        lazy="noload",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "content_item_id", name="uq_votes_user_item"),
    )

    def __repr__(self) -> str:
        return f"Vote(user_id={self.user_id}, content_item_id={self.content_item_id})"
