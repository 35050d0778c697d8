"""
Tests for the vector helpers and the pgvector query builder.

This test module verifies:
1. Vector validation before storage
2. Cosine similarity and clamping
3. Neighbour ranking (strict threshold, tie-break by id, truncation)
4. The nearest-neighbour SQL statement
"""

import math

import pytest
from sqlalchemy.dialects import postgresql

from reelsense.services.search.vector_index import build_nearest_statement
from reelsense.services.search.vectors import (
    clamp_similarity,
    cosine_similarity,
    rank_neighbours,
    validate_vector,
)


class TestValidateVector:
    """Vectors are checked before they are written."""

    def test_accepts_correct_dimension(self):
        assert validate_vector([1, 2, 3], dimension=3) == [1.0, 2.0, 3.0]

    def test_rejects_wrong_dimension(self):
        with pytest.raises(ValueError):
            validate_vector([1.0, 2.0], dimension=3)

    def test_rejects_empty_vector(self):
        with pytest.raises(ValueError):
            validate_vector([], dimension=3)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_rejects_non_finite_components(self, bad):
        with pytest.raises(ValueError):
            validate_vector([0.1, bad, 0.3], dimension=3)

    def test_default_dimension_comes_from_settings(self):
        vector = validate_vector([0.0] * 1536)
        assert len(vector) == 1536


class TestCosineSimilarity:

    def test_identical_vectors(self):
        assert cosine_similarity([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_zero_vector_has_no_similarity(self):
        assert cosine_similarity([0, 0, 0], [1, 2, 3]) == 0.0

    def test_symmetry(self):
        a, b = [0.3, 0.9, -0.2], [0.5, -0.1, 0.8]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    @pytest.mark.parametrize(
        "value,expected",
        [(1.0000001, 1.0), (-0.2, 0.0), (0.42, 0.42), (math.nan, 0.0)],
    )
    def test_clamp(self, value, expected):
        assert clamp_similarity(value) == pytest.approx(expected)


class TestRankNeighbours:

    def test_orders_by_similarity_then_id(self):
        scored = [(5, 0.8, "e"), (2, 0.9, "b"), (3, 0.8, "c"), (1, 0.7, "a")]

        ranked = rank_neighbours(scored, k=10)

        assert [item_id for item_id, _, _ in ranked] == [2, 3, 5, 1]

    def test_threshold_is_strict(self):
        scored = [(1, 0.5, None), (2, 0.5000001, None), (3, 0.49, None)]

        ranked = rank_neighbours(scored, k=10, min_similarity=0.5)

        assert [item_id for item_id, _, _ in ranked] == [2]

    def test_truncates_to_k(self):
        scored = [(i, 1.0 - i / 10, None) for i in range(1, 8)]

        ranked = rank_neighbours(scored, k=3)

        assert [item_id for item_id, _, _ in ranked] == [1, 2, 3]

    def test_similarity_is_clamped(self):
        ranked = rank_neighbours([(1, 1.0000002, None)], k=1)
        assert ranked[0][1] == 1.0


class TestNearestStatement:
    """The SELECT sent to PostgreSQL."""

    def _sql(self, statement) -> str:
        return str(statement.compile(dialect=postgresql.dialect()))

    def test_uses_cosine_distance_operator(self):
        sql = self._sql(build_nearest_statement([0.1, 0.2, 0.3], k=5))

        assert "<=>" in sql
        assert "content_items.embedding IS NOT NULL" in sql
        assert "content_items.status" in sql
        assert "LIMIT" in sql

    def test_orders_by_distance_then_id(self):
        sql = self._sql(build_nearest_statement([0.1, 0.2, 0.3], k=5))

        order_by = sql.split("ORDER BY", 1)[1]
        distance_at = min(
            position for position in (order_by.find("<=>"), order_by.find("distance"))
            if position >= 0
        )
        assert distance_at < order_by.index("content_items.id")

    def test_threshold_adds_similarity_filter(self):
        plain = self._sql(build_nearest_statement([0.1, 0.2, 0.3], k=5))
        filtered = self._sql(build_nearest_statement([0.1, 0.2, 0.3], k=5, min_similarity=0.5))

        assert filtered.count("<=>") == plain.count("<=>") + 1

    def test_exclusions(self):
        sql = self._sql(build_nearest_statement([0.1, 0.2, 0.3], k=5, exclude={42}))
        assert "NOT IN" in sql
