"""
Search API Routes

Semantic search over the catalog. Public: no authentication required.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from reelsense.api.deps import get_search_service
from reelsense.core.exceptions import InvalidQueryError
from reelsense.schemas.discovery import SearchRequest, SearchResponse, SearchResultResponse
from reelsense.services.search.semantic_search import SemanticSearchService

router = APIRouter(tags=["search"])


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    service: SemanticSearchService = Depends(get_search_service)
):
    """
    Semantic video search.

    Falls back to keyword matching (similarity 0.5) when embeddings are
    unavailable.

    Args:
        request: Query text, optional limit (1-50) and threshold (0-1)

    Returns:
        {"data": [SearchResult, ...]}
    """
    try:
        results = await service.search(
            request.query,
            limit=request.limit,
            threshold=request.threshold
        )
    except InvalidQueryError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    return SearchResponse(data=[SearchResultResponse.model_validate(r) for r in results])
