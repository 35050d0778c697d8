"""
Service factories for FastAPI routes.

Each request gets services bound to its own database session. Tests swap
any of these out with ``app.dependency_overrides``.

The streaming chat endpoint cannot use the request-scoped session: the
response body is produced after the route returns. It asks for an
``AssistantScope`` instead, which opens a session for the lifetime of the
stream.
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.db.deps import DBSession
from reelsense.db.session import AsyncSessionLocal
from reelsense.services.content_store import ContentStore
from reelsense.services.processors.embedder import get_embedding_service
from reelsense.services.processors.embedding_generator import EmbeddingGenerator
from reelsense.services.rag.assistant import ChatAssistant
from reelsense.services.rag.conversation_service import ConversationService
from reelsense.services.rag.generator import get_generator
from reelsense.services.recommendations.blender import RecommendationBlender
from reelsense.services.search.semantic_search import SemanticSearchService
from reelsense.services.search.vector_index import VectorIndex

AssistantScope = Callable[[], AsyncContextManager[ChatAssistant]]


def build_search_service(db: AsyncSession) -> SemanticSearchService:
    return SemanticSearchService(ContentStore(db), VectorIndex(db), get_embedding_service())


def build_assistant(db: AsyncSession) -> ChatAssistant:
    search = build_search_service(db)
    return ChatAssistant(ConversationService(db), search, get_generator(), search.store)


def get_content_store(db: DBSession) -> ContentStore:
    return ContentStore(db)


def get_search_service(db: DBSession) -> SemanticSearchService:
    return build_search_service(db)


def get_blender(
    search: SemanticSearchService = Depends(get_search_service)
) -> RecommendationBlender:
    return RecommendationBlender(search.store, search)


def get_assistant(db: DBSession) -> ChatAssistant:
    return build_assistant(db)


def get_embedding_generator(db: DBSession) -> EmbeddingGenerator:
    return EmbeddingGenerator(ContentStore(db), get_embedding_service())


@asynccontextmanager
async def open_assistant() -> AsyncIterator[ChatAssistant]:
    async with AsyncSessionLocal() as db:
        yield build_assistant(db)


def get_assistant_scope() -> AssistantScope:
    return open_assistant
