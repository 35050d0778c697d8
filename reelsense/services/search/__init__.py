"""
Search Services

- vector_index: pgvector nearest-neighbour queries
- semantic_search: query embedding + vector search with lexical fallback
"""

from reelsense.services.search.semantic_search import SemanticSearchService
from reelsense.services.search.vector_index import VectorIndex, build_nearest_statement

__all__ = [
    "SemanticSearchService",
    "VectorIndex",
    "build_nearest_statement",
]
