"""
Vector Index Adapter

Nearest-neighbour queries over ``content_items.embedding`` using pgvector.

Similarity:
-----------
pgvector's ``<=>`` returns cosine *distance*; we report

    similarity = 1 - distance        (clamped into [0, 1])

Only approved items with a non-null embedding take part. Results come back
by similarity descending, ties broken by item id ascending, so two runs over
the same data return the same order.

Threshold semantics are strict (``similarity > min_similarity``) and are
applied twice: in SQL, so the HNSW index does the work, and again when rows
are shaped, so rounding in the database can never let a boundary row
through.
"""

import logging
from typing import Iterable, Optional, Sequence

import numpy as np
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.models.content import ContentItem, ContentStatus
from reelsense.services.content_store import to_catalog_item, vote_count_expression
from reelsense.services.search.vectors import rank_neighbours
from reelsense.services.types import SearchResult

logger = logging.getLogger(__name__)


def build_nearest_statement(
    query_vector: Sequence[float],
    k: int,
    min_similarity: Optional[float] = None,
    exclude: Optional[Iterable[int]] = None,
) -> Select:
    """
    Build the nearest-neighbour SELECT.

    Rows are ``(ContentItem, vote_count, distance)``.
    """
    distance = ContentItem.embedding.cosine_distance(list(query_vector))

    query = select(
        ContentItem,
        vote_count_expression().label("vote_count"),
        distance.label("distance"),
    ).where(
        ContentItem.status == ContentStatus.APPROVED,
        ContentItem.embedding.is_not(None),
    )

    if min_similarity is not None:
        query = query.where((1 - distance) > min_similarity)

    excluded = list(exclude or ())
    if excluded:
        query = query.where(ContentItem.id.notin_(excluded))

    return query.order_by(distance.asc(), ContentItem.id.asc()).limit(k)


class VectorIndex:
    """
    pgvector-backed nearest-neighbour lookups.

    Errors (connection, SQL) propagate; the search service decides how to
    degrade.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def nearest(
        self,
        query_vector: Sequence[float],
        k: int,
        min_similarity: Optional[float] = None,
        exclude: Optional[Iterable[int]] = None,
    ) -> list[SearchResult]:
        """
        Top ``k`` approved items closest to ``query_vector``.

        Args:
            query_vector: Query embedding
            k: Maximum number of results
            min_similarity: Strict lower bound on similarity (None = no bound)
            exclude: Item ids to leave out
        """
        if k <= 0:
            return []

        query = build_nearest_statement(query_vector, k, min_similarity, exclude)
        result = await self.db.execute(query)

        scored = [
            (item.id, 1.0 - float(distance), to_catalog_item(item, vote_count))
            for item, vote_count, distance in result.all()
        ]
        ranked = rank_neighbours(scored, k, min_similarity)

        return [catalog.with_similarity(similarity) for _, similarity, catalog in ranked]

    async def get_vector(self, item_id: int) -> Optional[list[float]]:
        """The stored embedding for ``item_id``, or None if missing."""
        result = await self.db.execute(
            select(ContentItem.embedding).where(ContentItem.id == item_id)
        )
        vector = result.scalar_one_or_none()
        if vector is None:
            return None
        return np.asarray(vector, dtype=np.float64).tolist()

    async def nearest_to_item(self, item_id: int, k: int) -> list[SearchResult]:
        """
        Items closest to an existing item's embedding, excluding the item.

        Returns [] if the item has no embedding (or does not exist).
        """
        vector = await self.get_vector(item_id)
        if vector is None:
            logger.debug(f"Item {item_id} has no embedding; no neighbours")
            return []

        return await self.nearest(vector, k, exclude={item_id})
