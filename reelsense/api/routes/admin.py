"""
Admin API Routes

Embedding maintenance. Requires an administrator (see ADMIN_USER_IDS).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from reelsense.api.deps import get_content_store, get_embedding_generator
from reelsense.core.auth import require_admin
from reelsense.models.user import User
from reelsense.schemas.discovery import EmbeddingEnqueuedResponse, EmbeddingJobResponse
from reelsense.services.content_store import ContentStore
from reelsense.services.processors.embedding_generator import EmbeddingGenerator
from reelsense.tasks.embedding_tasks import embed_content_item_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/migrate-embeddings", response_model=EmbeddingJobResponse)
async def migrate_embeddings(
    admin: User = Depends(require_admin),
    generator: EmbeddingGenerator = Depends(get_embedding_generator)
):
    """
    Embed every approved item that has no embedding yet.

    Runs inline and reports how many items were stored and how many failed.
    """
    logger.info(f"Embedding migration requested by user {admin.id}")
    result = await generator.migrate_missing()
    return EmbeddingJobResponse(processed=result.processed, failed=result.failed)


@router.post(
    "/embeddings/{item_id}",
    response_model=EmbeddingEnqueuedResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def enqueue_item_embedding(
    item_id: int,
    admin: User = Depends(require_admin),
    store: ContentStore = Depends(get_content_store)
):
    """
    Queue a background (re-)embedding of one content item.

    Raises:
        HTTPException 404: Unknown item
    """
    if await store.get_item(item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content item not found"
        )

    task = embed_content_item_task.delay(item_id)
    logger.info(f"Queued embedding of content item {item_id} (task {task.id}) for user {admin.id}")

    return EmbeddingEnqueuedResponse(
        message="Embedding queued",
        item_id=item_id,
        task_id=task.id
    )
