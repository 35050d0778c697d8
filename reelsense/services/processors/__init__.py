"""
Embedding Processors Package

Modules:
--------
- embedder: Embedding provider (OpenAI embeddings API)
- embedding_generator: Fills and refreshes content item embeddings
"""

from reelsense.services.processors.embedder import EmbeddingService, get_embedding_service
from reelsense.services.processors.embedding_generator import EmbeddingGenerator

__all__ = [
    "EmbeddingService",
    "get_embedding_service",
    "EmbeddingGenerator",
]
