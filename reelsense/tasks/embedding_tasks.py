"""
Celery tasks for content item embeddings.

This module contains background tasks for:
- Embedding a single content item after it is created or edited
- Periodically embedding every approved item still missing a vector

Each task runs its coroutine in a fresh event loop with its own session
and provider client.
"""

import asyncio
import logging
import time

from celery import Task

from reelsense.db.session import AsyncSessionLocal, engine
from reelsense.services.content_store import ContentStore
from reelsense.services.processors.embedder import EmbeddingService
from reelsense.services.processors.embedding_generator import EmbeddingGenerator
from reelsense.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ========================================
# Async Helper
# ========================================

def run_async(coro):
    """
    Run async coroutine, handling both event loop and no event loop scenarios.

    This helper allows tasks to work in both:
    - Production (Celery worker with no event loop) - uses asyncio.run()
    - Tests (pytest with existing event loop) - runs in thread pool
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No event loop running - we're in a Celery worker
        return asyncio.run(coro)
    else:
        # Event loop is running - run in a new thread to avoid "loop already running"
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor() as executor:
            future = executor.submit(asyncio.run, coro)
            return future.result()


async def _with_generator(work):
    """
    Run ``work(generator)`` against a fresh session and provider client.

    Pooled connections belong to the loop that opened them, so the pool is
    disposed before the loop closes.
    """
    embedder = EmbeddingService()
    try:
        async with AsyncSessionLocal() as db:
            generator = EmbeddingGenerator(ContentStore(db), embedder)
            return await work(generator)
    finally:
        if embedder.client is not None:
            await embedder.client.close()
        await engine.dispose()


# ========================================
# Base Task Class
# ========================================

class EmbeddingTask(Task):
    """Base task class with retry logic and error handling."""

    autoretry_for = (Exception,)
    retry_kwargs = {'max_retries': 3}
    retry_backoff = True
    retry_backoff_max = 600  # 10 minutes
    retry_jitter = True


# ========================================
# Tasks
# ========================================

@celery_app.task(
    base=EmbeddingTask,
    name='embedding.embed_content_item',
    bind=True,
    max_retries=3
)
def embed_content_item_task(self, content_item_id: int) -> dict:
    """
    Embed (or re-embed) one content item.

    Provider failures are logged by the generator and left for the
    periodic sweep; only infrastructure errors (database) trigger a retry.

    Args:
        content_item_id: Database ID of the ContentItem

    Returns:
        {'content_item_id': int, 'processing_time_seconds': float}
    """
    start_time = time.time()

    run_async(_with_generator(lambda generator: generator.embed_one(content_item_id)))

    return {
        'content_item_id': content_item_id,
        'processing_time_seconds': round(time.time() - start_time, 2)
    }


@celery_app.task(
    base=EmbeddingTask,
    name='embedding.migrate_missing_embeddings',
    bind=True,
    max_retries=3
)
def migrate_missing_embeddings_task(self) -> dict:
    """
    Embed every approved content item without an embedding.

    Scheduled by Celery beat (EMBEDDING_SWEEP_INTERVAL_MINUTES).

    Returns:
        {'processed': int, 'failed': int, 'processing_time_seconds': float}
    """
    start_time = time.time()

    result = run_async(_with_generator(lambda generator: generator.migrate_missing()))

    logger.info(f"Embedding sweep: {result.processed} processed, {result.failed} failed")

    return {
        'processed': result.processed,
        'failed': result.failed,
        'processing_time_seconds': round(time.time() - start_time, 2)
    }
