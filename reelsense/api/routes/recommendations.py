"""
Recommendation API Routes

- GET /recommendations             personalised feed (auth)
- GET /recommendations/anonymous   popular items (public)
- GET /recommendations/similar/{item_id}  item-to-item (public)
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from reelsense.api.deps import get_blender, get_content_store
from reelsense.core.auth import get_current_active_user
from reelsense.models.user import User
from reelsense.schemas.discovery import RecommendationResponse, RecommendedItemResponse
from reelsense.services.content_store import ContentStore
from reelsense.services.recommendations.blender import RecommendationBlender

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _response(items) -> RecommendationResponse:
    return RecommendationResponse(data=[RecommendedItemResponse.model_validate(i) for i in items])


@router.get("", response_model=RecommendationResponse)
async def get_recommendations(
    limit: int = Query(default=20, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    blender: RecommendationBlender = Depends(get_blender)
):
    """
    Personalised recommendations for the current user.

    Blends followed creators, items similar to recent votes, trending and
    random discovery.
    """
    items = await blender.recommend(current_user.id, limit=limit)
    return _response(items)


@router.get("/anonymous", response_model=RecommendationResponse)
async def get_anonymous_recommendations(
    limit: int = Query(default=20, ge=1, le=50),
    blender: RecommendationBlender = Depends(get_blender)
):
    """Popular items for visitors who are not signed in."""
    items = await blender.recommend_anonymous(limit=limit)
    return _response(items)


@router.get("/similar/{item_id}", response_model=RecommendationResponse)
async def get_similar_items(
    item_id: int,
    limit: int = Query(default=10, ge=1, le=50),
    blender: RecommendationBlender = Depends(get_blender),
    store: ContentStore = Depends(get_content_store)
):
    """
    Items similar to a given item.

    Raises:
        HTTPException 404: Unknown item
    """
    if await store.get_item(item_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content item not found"
        )

    items = await blender.similar_to(item_id, limit=limit)
    return _response(items)
