"""
User and social-graph models.

Accounts and follow edges are owned by the account service; this service
only reads them. The columns declared here are the subset the discovery
core needs (identity, display name, avatar, active flag, follow edges).

Database Tables:
----------------
- users: Platform accounts (creators and viewers alike)
- follows: Directed "follower → followed creator" edges
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reelsense.db.base import BaseModel, String50, String255, String1000

if TYPE_CHECKING:
    from reelsense.models.content import ContentItem
    from reelsense.models.conversation import Conversation


class User(BaseModel):
    """
    Platform account.

    A user can be a viewer, a creator, or both; creators are simply users
    who own ContentItems.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String255,
        unique=True,
        nullable=False,
        comment="Login email (unique)"
    )

    username: Mapped[str] = mapped_column(
        String50,
        unique=True,
        nullable=False,
        comment="Public handle shown next to content"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        String1000,
        nullable=True,
        comment="Avatar image URL"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Disabled accounts cannot call authenticated endpoints"
    )

    content_items: Mapped[list["ContentItem"]] = relationship(
        "ContentItem",
        back_populates="creator",
        lazy="noload",
    )

    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}')"


class Follow(BaseModel):
    """
    Follow edge: ``follower_id`` follows creator ``following_id``.

    Used by the recommendation blender's "followed creators" signal.
    """

    __tablename__ = "follows"

    follower_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="The user who follows"
    )

    following_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="The creator being followed"
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
    )

    def __repr__(self) -> str:
        return f"Follow(follower_id={self.follower_id}, following_id={self.following_id})"
