"""
Celery tasks for background processing.
"""

from reelsense.tasks.embedding_tasks import (
    embed_content_item_task,
    migrate_missing_embeddings_task,
)

__all__ = [
    "embed_content_item_task",
    "migrate_missing_embeddings_task",
]
