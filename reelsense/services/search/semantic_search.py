"""
Semantic Search Service

Turns a free-text query into ranked catalog items.

Pipeline:
---------
1. Validate the query (non-blank, bounded limit and threshold)
2. Embed the query with the embedding provider
3. Ask the vector index for the nearest approved items above the threshold

Degradation:
------------
If the embedding provider is not configured, or anything in steps 2-3
fails, the service falls back to a lexical search: case-insensitive
substring match on title/description, newest first. Lexical results carry
a placeholder similarity of 0.5. A well-formed query never raises.
"""

import logging
from typing import Optional

from reelsense.core.config import settings
from reelsense.core.exceptions import InvalidQueryError
from reelsense.services.content_store import ContentStore
from reelsense.services.processors.embedder import EmbeddingService
from reelsense.services.search.vector_index import VectorIndex
from reelsense.services.types import LEXICAL_SIMILARITY, SearchResult

logger = logging.getLogger(__name__)


def validate_search(query_text: str, limit: int, threshold: float) -> str:
    """
    Check search arguments; returns the stripped query.

    Raises:
        InvalidQueryError: Blank or overlong query, limit outside
            1..SEARCH_MAX_LIMIT, threshold outside [0, 1]
    """
    if query_text is None or not query_text.strip():
        raise InvalidQueryError("Search query must not be empty")
    if len(query_text) > settings.SEARCH_QUERY_MAX_LENGTH:
        raise InvalidQueryError(
            f"Search query must be at most {settings.SEARCH_QUERY_MAX_LENGTH} characters"
        )
    if not 1 <= limit <= settings.SEARCH_MAX_LIMIT:
        raise InvalidQueryError(f"limit must be between 1 and {settings.SEARCH_MAX_LIMIT}")
    if not 0.0 <= threshold <= 1.0:
        raise InvalidQueryError("threshold must be between 0 and 1")
    return query_text.strip()


class SemanticSearchService:
    """
    Vector search over the catalog with a lexical safety net.

    Usage:
    ------
    service = SemanticSearchService(store, index, embedder)

    results = await service.search("street food in bangkok", limit=10)
    similar = await service.find_similar(item_id=42)
    """

    def __init__(
        self,
        store: ContentStore,
        index: VectorIndex,
        embedder: EmbeddingService,
    ):
        self.store = store
        self.index = index
        self.embedder = embedder

    async def search(
        self,
        query_text: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> list[SearchResult]:
        """
        Search the catalog.

        Args:
            query_text: Free-text query
            limit: Maximum results (default SEARCH_DEFAULT_LIMIT)
            threshold: Strict minimum similarity (default SEARCH_DEFAULT_THRESHOLD)

        Returns:
            Results by similarity descending (or newest first, on fallback)

        Raises:
            InvalidQueryError: Malformed arguments (checked before any provider call)
        """
        limit = settings.SEARCH_DEFAULT_LIMIT if limit is None else limit
        threshold = settings.SEARCH_DEFAULT_THRESHOLD if threshold is None else threshold
        query = validate_search(query_text, limit, threshold)

        if not self.embedder.is_configured:
            logger.warning("Embedding provider not configured, falling back to keyword search")
            return await self.lexical_search(query, limit)

        try:
            query_vector = await self.embedder.embed(query)
            results = await self.index.nearest(query_vector, limit, min_similarity=threshold)
        except Exception as e:
            logger.error(f"Semantic search failed, falling back to keyword search: {e}")
            await self.store.rollback()
            return await self.lexical_search(query, limit)

        logger.info(f"Semantic search for '{query[:50]}' returned {len(results)} results")
        return results

    async def lexical_search(self, query_text: str, limit: int) -> list[SearchResult]:
        """Keyword match on title/description; [] if the store is unreachable."""
        try:
            items = await self.store.lexical_search(query_text, limit)
        except Exception as e:
            logger.error(f"Keyword search failed: {e}")
            await self.store.rollback()
            return []
        return [item.with_similarity(LEXICAL_SIMILARITY) for item in items]

    async def find_similar(self, item_id: int, limit: int = 10) -> list[SearchResult]:
        """
        Items nearest to an existing item, excluding it.

        Returns [] if the item has no embedding or the lookup fails.
        """
        try:
            return await self.index.nearest_to_item(item_id, limit)
        except Exception as e:
            logger.error(f"Find similar items failed for {item_id}: {e}")
            await self.store.rollback()
            return []
