"""
Recommendation Blender

Mixes four signals into one ranked feed for a signed-in user:

    source     score             share  reason
    ---------  ----------------  -----  --------------------------------
    followed   0.3               30%    From {username}, who you follow
    similar    0.4 * similarity  40%    Based on videos you've liked
    trending   0.2               20%    Trending this week
    discovery  0.1               10%    Discover something new

Each source is capped at ``ceil(limit * share)``. Candidates are merged by
walking SOURCE_PRECEDENCE in order; the first source to propose an item
keeps it. The merged list is sorted by (score desc, source precedence,
position within the source) and truncated to ``limit``, so the same inputs
always produce the same feed.

A source that fails is logged and contributes nothing; the feed is built
from whatever remains.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from reelsense.core.config import settings
from reelsense.db.base import utcnow
from reelsense.services.content_store import ContentStore
from reelsense.services.search.semantic_search import SemanticSearchService
from reelsense.services.types import CatalogItem, RecommendedItem

logger = logging.getLogger(__name__)


SOURCE_PRECEDENCE = ("followed", "similar", "trending", "discovery")

SIMILAR_VOTE_WINDOW = 10
SIMILAR_SEED_COUNT = 3


@dataclass(frozen=True)
class SourceWeight:
    score: float
    share: int  # percent of the requested limit
    reason: str


SOURCE_WEIGHTS = {
    "followed": SourceWeight(score=0.3, share=30, reason="From {username}, who you follow"),
    "similar": SourceWeight(score=0.4, share=40, reason="Based on videos you've liked"),
    "trending": SourceWeight(score=0.2, share=20, reason="Trending this week"),
    "discovery": SourceWeight(score=0.1, share=10, reason="Discover something new"),
}

ANONYMOUS_REASON = "popular"
SIMILAR_ITEM_REASON = "Similar to this video"


def source_cap(limit: int, source: str) -> int:
    return math.ceil(limit * SOURCE_WEIGHTS[source].share / 100)


def discovery_offset(total: int, cap: int, draw: float) -> int:
    """``floor(draw * (total - cap))`` clamped into ``[0, max(0, total - cap)]``."""
    upper = max(0, total - cap)
    return min(upper, max(0, math.floor(draw * (total - cap))))


def blend(sources: dict[str, list[RecommendedItem]], limit: int) -> list[RecommendedItem]:
    """
    Merge per-source candidates into one ranked list.

    First writer (in SOURCE_PRECEDENCE order) wins for an item id.
    """
    merged: dict[int, tuple[RecommendedItem, int, int]] = {}

    for precedence, name in enumerate(SOURCE_PRECEDENCE):
        for position, item in enumerate(sources.get(name, [])):
            if item.id not in merged:
                merged[item.id] = (item, precedence, position)

    ranked = sorted(merged.values(), key=lambda entry: (-entry[0].score, entry[1], entry[2]))
    return [item for item, _, _ in ranked[:limit]]


def _as_recommended(item: CatalogItem, reason: str, score: float, similarity: float = 1.0) -> RecommendedItem:
    return item.with_similarity(similarity).recommended(reason=reason, score=score)


class RecommendationBlender:
    """
    Personalised, anonymous and item-to-item recommendations.

    Sources run one after another: they share the request's database
    session, which does not allow concurrent statements.

    Usage:
    ------
    blender = RecommendationBlender(store, search)

    feed = await blender.recommend(user_id=7, limit=20)
    popular = await blender.recommend_anonymous(limit=20)
    related = await blender.similar_to(item_id=42)
    """

    def __init__(
        self,
        store: ContentStore,
        search: SemanticSearchService,
        rng: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.search = search
        self.rng = rng or random.random

    async def recommend(self, user_id: int, limit: int = 20) -> list[RecommendedItem]:
        if limit <= 0:
            return []

        voted = await self._run("endorsements", self.store.endorsed_ids(user_id), set())

        sources = {
            "followed": await self._run(
                "followed", self._followed(user_id, source_cap(limit, "followed")), []
            ),
            "similar": await self._run(
                "similar", self._similar(user_id, source_cap(limit, "similar"), voted), []
            ),
            "trending": await self._run(
                "trending", self._trending(source_cap(limit, "trending"), voted), []
            ),
            "discovery": await self._run(
                "discovery", self._discovery(source_cap(limit, "discovery"), voted), []
            ),
        }

        feed = blend(sources, limit)
        logger.info(
            f"Recommendations for user {user_id}: {len(feed)} items "
            f"({', '.join(f'{name}={len(items)}' for name, items in sources.items())})"
        )
        return feed

    async def recommend_anonymous(self, limit: int = 20) -> list[RecommendedItem]:
        if limit <= 0:
            return []

        items = await self._run("popular", self.store.popular(limit), [])
        return [_as_recommended(item, ANONYMOUS_REASON, 1.0) for item in items]

    async def similar_to(self, item_id: int, limit: int = 10) -> list[RecommendedItem]:
        results = await self.search.find_similar(item_id, limit)
        return [
            result.recommended(reason=SIMILAR_ITEM_REASON, score=result.similarity)
            for result in results
        ]

    async def _run(self, name: str, source, default):
        try:
            return await source
        except Exception as e:
            logger.error(f"Recommendation source '{name}' failed: {e}")
            await self.store.rollback()
            return default

    # ================================
    # Sources
    # ================================

    async def _followed(self, user_id: int, cap: int) -> list[RecommendedItem]:
        creator_ids = await self.store.followed_creator_ids(user_id)
        if not creator_ids:
            return []

        weight = SOURCE_WEIGHTS["followed"]
        items = await self.store.newest_by_creators(creator_ids, cap)
        return [
            _as_recommended(item, weight.reason.format(username=item.creator.username), weight.score)
            for item in items
        ]

    async def _similar(self, user_id: int, cap: int, voted: set[int]) -> list[RecommendedItem]:
        recent = await self.store.recent_endorsements(user_id, SIMILAR_VOTE_WINDOW)
        if not recent:
            return []

        excluded = voted | set(recent)
        per_seed = math.ceil(cap / SIMILAR_SEED_COUNT)
        weight = SOURCE_WEIGHTS["similar"]

        candidates = []
        for seed_id in recent[:SIMILAR_SEED_COUNT]:
            for result in await self.search.find_similar(seed_id, per_seed):
                if result.id not in excluded:
                    candidates.append(
                        result.recommended(reason=weight.reason, score=weight.score * result.similarity)
                    )

        return candidates[:cap]

    async def _trending(self, cap: int, voted: set[int]) -> list[RecommendedItem]:
        since = utcnow() - timedelta(days=settings.TRENDING_WINDOW_DAYS)
        weight = SOURCE_WEIGHTS["trending"]
        items = await self.store.trending(since, cap, exclude=voted)
        return [_as_recommended(item, weight.reason, weight.score) for item in items]

    async def _discovery(self, cap: int, voted: set[int]) -> list[RecommendedItem]:
        total = await self.store.count_approved(exclude=voted)
        if total == 0:
            return []

        offset = discovery_offset(total, cap, self.rng())
        weight = SOURCE_WEIGHTS["discovery"]
        items = await self.store.approved_window(offset, cap, exclude=voted)
        return [_as_recommended(item, weight.reason, weight.score) for item in items]
