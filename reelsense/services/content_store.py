"""
Content Store

Read access to the catalog (content items, creators, follows, votes) plus
the one write this service owns: storing an item's embedding.

Every read returns service records (CatalogItem), never ORM rows, so the
search, recommendation and chat layers never touch a live session object.

Engagement:
-----------
An item's ``vote_count`` is derived with a correlated COUNT over ``votes``
on every read; it is not a stored column.
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.db.base import utcnow
from reelsense.models.content import ContentItem, ContentStatus, Vote, embedding_input
from reelsense.models.user import Follow
from reelsense.services.types import CatalogItem, CreatorSummary


def vote_count_expression():
    """Correlated ``COUNT(votes)`` for the ContentItem in the outer query."""
    return (
        select(func.count(Vote.id))
        .where(Vote.content_item_id == ContentItem.id)
        .correlate(ContentItem)
        .scalar_subquery()
    )


def catalog_select() -> Select:
    """SELECT (ContentItem, vote_count); the creator is eagerly joined."""
    return select(ContentItem, vote_count_expression().label("vote_count"))


def to_catalog_item(item: ContentItem, vote_count: Optional[int]) -> CatalogItem:
    creator = item.creator
    return CatalogItem(
        id=item.id,
        title=item.title,
        description=item.description,
        video_url=item.video_url,
        thumbnail_url=item.thumbnail_url,
        duration=item.duration or 0,
        creator=CreatorSummary(
            id=creator.id if creator is not None else item.creator_id,
            username=creator.username if creator is not None else "",
            avatar_url=creator.avatar_url if creator is not None else None,
        ),
        vote_count=int(vote_count or 0),
        created_at=item.created_at,
    )


def _approved():
    return ContentItem.status == ContentStatus.APPROVED


def _not_in(exclude: Optional[Iterable[int]]):
    ids = list(exclude or ())
    if not ids:
        return None
    return ContentItem.id.notin_(ids)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ContentStore:
    """
    Catalog reads and embedding writes for one database session.

    Usage:
    ------
    store = ContentStore(db)

    item = await store.get_item(42)
    newest = await store.newest_by_creators([7, 9], limit=6)
    await store.write_embedding(42, vector)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def rollback(self) -> None:
        """Discard a failed transaction so the session can be reused."""
        await self.db.rollback()

    async def _fetch(self, query: Select) -> list[CatalogItem]:
        result = await self.db.execute(query)
        return [to_catalog_item(item, vote_count) for item, vote_count in result.all()]

    # ================================
    # Items
    # ================================

    async def get_item(self, item_id: int) -> Optional[CatalogItem]:
        """Any item by id, whatever its moderation status."""
        rows = await self._fetch(catalog_select().where(ContentItem.id == item_id))
        return rows[0] if rows else None

    async def get_items(self, item_ids: Sequence[int]) -> list[CatalogItem]:
        """
        Approved items for ``item_ids``, in the order given.

        Ids that are unknown or no longer approved are skipped.
        """
        if not item_ids:
            return []

        rows = await self._fetch(
            catalog_select().where(ContentItem.id.in_(list(set(item_ids))), _approved())
        )
        by_id = {row.id: row for row in rows}
        return [by_id[item_id] for item_id in item_ids if item_id in by_id]

    async def lexical_search(self, text: str, limit: int) -> list[CatalogItem]:
        """Case-insensitive substring match on title or description, newest first."""
        pattern = f"%{_escape_like(text)}%"
        query = (
            catalog_select()
            .where(
                _approved(),
                or_(
                    ContentItem.title.ilike(pattern, escape="\\"),
                    ContentItem.description.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(ContentItem.created_at.desc(), ContentItem.id.asc())
            .limit(limit)
        )
        return await self._fetch(query)

    async def popular(self, limit: int) -> list[CatalogItem]:
        """Approved items by votes desc, then newest, then id."""
        vote_count = vote_count_expression()
        query = (
            catalog_select()
            .where(_approved())
            .order_by(vote_count.desc(), ContentItem.created_at.desc(), ContentItem.id.asc())
            .limit(limit)
        )
        return await self._fetch(query)

    async def trending(
        self,
        since: datetime,
        limit: int,
        exclude: Optional[Iterable[int]] = None,
    ) -> list[CatalogItem]:
        """Approved items created at or after ``since``, most votes first."""
        vote_count = vote_count_expression()
        query = catalog_select().where(_approved(), ContentItem.created_at >= since)
        excluded = _not_in(exclude)
        if excluded is not None:
            query = query.where(excluded)
        query = query.order_by(
            vote_count.desc(), ContentItem.created_at.desc(), ContentItem.id.asc()
        ).limit(limit)
        return await self._fetch(query)

    async def count_approved(self, exclude: Optional[Iterable[int]] = None) -> int:
        query = select(func.count(ContentItem.id)).where(_approved())
        excluded = _not_in(exclude)
        if excluded is not None:
            query = query.where(excluded)
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def approved_window(
        self,
        offset: int,
        limit: int,
        exclude: Optional[Iterable[int]] = None,
    ) -> list[CatalogItem]:
        """A stable (id-ordered) page of approved items."""
        query = catalog_select().where(_approved())
        excluded = _not_in(exclude)
        if excluded is not None:
            query = query.where(excluded)
        query = query.order_by(ContentItem.id.asc()).offset(offset).limit(limit)
        return await self._fetch(query)

    # ================================
    # Social graph
    # ================================

    async def followed_creator_ids(self, user_id: int) -> list[int]:
        result = await self.db.execute(
            select(Follow.following_id).where(Follow.follower_id == user_id)
        )
        return list(result.scalars().all())

    async def newest_by_creators(self, creator_ids: Sequence[int], limit: int) -> list[CatalogItem]:
        if not creator_ids:
            return []
        query = (
            catalog_select()
            .where(_approved(), ContentItem.creator_id.in_(list(creator_ids)))
            .order_by(ContentItem.created_at.desc(), ContentItem.id.asc())
            .limit(limit)
        )
        return await self._fetch(query)

    async def recent_endorsements(self, user_id: int, limit: int = 10) -> list[int]:
        """Item ids of the user's most recent votes, newest first."""
        result = await self.db.execute(
            select(Vote.content_item_id)
            .where(Vote.user_id == user_id)
            .order_by(Vote.created_at.desc(), Vote.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def endorsed_ids(self, user_id: int) -> set[int]:
        result = await self.db.execute(
            select(Vote.content_item_id).where(Vote.user_id == user_id)
        )
        return set(result.scalars().all())

    # ================================
    # Embeddings
    # ================================

    async def items_for_embedding(self, item_ids: Sequence[int]) -> dict[int, str]:
        """Embedding input text keyed by id, for the ids that exist."""
        if not item_ids:
            return {}
        result = await self.db.execute(
            select(ContentItem.id, ContentItem.title, ContentItem.description)
            .where(ContentItem.id.in_(list(item_ids)))
        )
        return {
            item_id: embedding_input(title, description)
            for item_id, title, description in result.all()
        }

    async def missing_embedding_ids(self) -> list[int]:
        """Approved items that have never been embedded, by id."""
        result = await self.db.execute(
            select(ContentItem.id)
            .where(_approved(), ContentItem.embedding.is_(None))
            .order_by(ContentItem.id.asc())
        )
        return list(result.scalars().all())

    async def write_embedding(self, item_id: int, vector: list[float]) -> bool:
        """
        Store an item's vector and timestamp in one UPDATE, then commit.

        Returns:
            False if the item no longer exists
        """
        try:
            result = await self.db.execute(
                update(ContentItem)
                .where(ContentItem.id == item_id)
                .values(embedding=vector, embedding_updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result.rowcount > 0
