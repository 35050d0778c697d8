"""
Vector helpers shared by the embedding pipeline and the index adapter.

numpy does the arithmetic; PostgreSQL/pgvector does the same computation
server-side with the ``<=>`` operator, so these helpers must agree with it:

    similarity = 1 - cosine_distance = cos(a, b)
"""

import math
from typing import Iterable, Optional, Sequence, TypeVar

import numpy as np

from reelsense.core.config import settings


T = TypeVar("T")


def validate_vector(vector: Sequence[float], dimension: Optional[int] = None) -> list[float]:
    """
    Check a provider vector before it is written.

    Returns the vector as a list of Python floats.

    Raises:
        ValueError: Wrong dimension, empty, or any non-finite component
    """
    expected = dimension or settings.EMBEDDING_DIMENSION
    array = np.asarray(vector, dtype=np.float64)

    if array.ndim != 1 or array.shape[0] != expected:
        raise ValueError(f"Expected a {expected}-dimensional vector, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise ValueError("Vector contains non-finite values")

    return array.tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def clamp_similarity(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def rank_neighbours(
    scored: Iterable[tuple[int, float, T]],
    k: int,
    min_similarity: Optional[float] = None,
) -> list[tuple[int, float, T]]:
    """
    Order ``(item_id, similarity, payload)`` triples the way the index does.

    - strict threshold: ``similarity > min_similarity``
    - similarity descending, then item id ascending
    - at most ``k`` entries
    - reported similarity clamped into [0, 1]
    """
    kept = [
        (item_id, similarity, payload)
        for item_id, similarity, payload in scored
        if min_similarity is None or similarity > min_similarity
    ]
    kept.sort(key=lambda entry: (-entry[1], entry[0]))
    return [
        (item_id, clamp_similarity(similarity), payload)
        for item_id, similarity, payload in kept[:k]
    ]
