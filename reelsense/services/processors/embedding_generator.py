"""
Embedding Generator

Keeps ``content_items.embedding`` populated.

Entry points:
-------------
- embed_one(item_id): (re)embed one item after create/edit; never raises
- embed_batch(item_ids): chunked bulk embedding with per-item accounting
- migrate_missing(): embed every approved item that has no vector yet

This is the only writer of embeddings. Each item is written with a single
UPDATE (vector + timestamp) and committed on its own, so a failure part way
through a batch leaves earlier items stored and later ones untouched.
"""

import logging
from typing import Optional, Sequence

from reelsense.core.config import settings
from reelsense.services.content_store import ContentStore
from reelsense.services.processors.embedder import EmbeddingService
from reelsense.services.search.vectors import validate_vector
from reelsense.services.types import EmbeddingJobResult

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """
    Generates and stores embeddings for catalog items.

    Usage:
    ------
    generator = EmbeddingGenerator(ContentStore(db), get_embedding_service())

    await generator.embed_one(42)
    result = await generator.migrate_missing()
    print(result.processed, result.failed)
    """

    def __init__(
        self,
        store: ContentStore,
        embedder: EmbeddingService,
        dimension: Optional[int] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.dimension = dimension or settings.EMBEDDING_DIMENSION

    async def embed_one(self, item_id: int) -> None:
        """
        Embed a single item.

        Failures are logged, not raised; the periodic sweep picks up
        anything left without a vector.
        """
        if not self.embedder.is_configured:
            logger.info(f"Embedding provider not configured; skipping item {item_id}")
            return

        texts = await self.store.items_for_embedding([item_id])
        text = texts.get(item_id)
        if text is None:
            logger.warning(f"Content item {item_id} not found; nothing to embed")
            return

        try:
            vector = validate_vector(await self.embedder.embed(text), self.dimension)
            await self.store.write_embedding(item_id, vector)
        except Exception as e:
            logger.error(f"Failed to embed content item {item_id}: {e}")
            return

        logger.info(f"Generated embedding for content item {item_id}")

    async def embed_batch(
        self,
        item_ids: Sequence[int],
        batch_size: Optional[int] = None,
    ) -> EmbeddingJobResult:
        """
        Embed many items, one provider call per chunk of ``batch_size``.

        Returns:
            Counts of stored and failed items. ``processed + failed`` always
            equals the number of ids given.

        Raises:
            ValueError: ``batch_size`` is not positive
        """
        if batch_size is None:
            batch_size = settings.EMBEDDING_BATCH_SIZE
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        ids = list(item_ids)

        if not ids:
            return EmbeddingJobResult()

        if not self.embedder.is_configured:
            logger.warning(f"Embedding provider not configured; {len(ids)} items not embedded")
            return EmbeddingJobResult(processed=0, failed=len(ids))

        total = EmbeddingJobResult()
        for start in range(0, len(ids), batch_size):
            chunk = ids[start:start + batch_size]
            chunk_result = await self._embed_chunk(chunk)
            total = total + chunk_result
            logger.info(
                f"Embedded batch {start // batch_size + 1}: "
                f"{chunk_result.processed} processed, {chunk_result.failed} failed"
            )

        return total

    async def _embed_chunk(self, chunk: list[int]) -> EmbeddingJobResult:
        try:
            texts = await self.store.items_for_embedding(chunk)
        except Exception as e:
            logger.error(f"Failed to load {len(chunk)} items for embedding: {e}")
            return EmbeddingJobResult(failed=len(chunk))

        found = [item_id for item_id in chunk if item_id in texts]
        missing = len(chunk) - len(found)
        if missing:
            logger.warning(f"{missing} content items not found while embedding")

        if not found:
            return EmbeddingJobResult(failed=len(chunk))

        try:
            vectors = await self.embedder.embed_many([texts[item_id] for item_id in found])
        except Exception as e:
            logger.error(f"Embedding call failed for a chunk of {len(found)} items: {e}")
            return EmbeddingJobResult(failed=len(chunk))

        if len(vectors) != len(found):
            logger.error(f"Provider returned {len(vectors)} vectors for {len(found)} inputs")
            return EmbeddingJobResult(failed=len(chunk))

        processed = 0
        failed = missing
        for item_id, raw_vector in zip(found, vectors):
            try:
                vector = validate_vector(raw_vector, self.dimension)
                stored = await self.store.write_embedding(item_id, vector)
            except Exception as e:
                logger.error(f"Failed to store embedding for content item {item_id}: {e}")
                failed += 1
                continue

            if stored:
                processed += 1
            else:
                failed += 1

        return EmbeddingJobResult(processed=processed, failed=failed)

    async def migrate_missing(self) -> EmbeddingJobResult:
        """Embed every approved item that has no vector yet."""
        ids = await self.store.missing_embedding_ids()
        if not ids:
            logger.info("No content items missing embeddings")
            return EmbeddingJobResult()

        logger.info(f"Embedding {len(ids)} content items without embeddings")
        result = await self.embed_batch(ids)
        logger.info(f"Embedding migration finished: {result.processed} processed, {result.failed} failed")
        return result
