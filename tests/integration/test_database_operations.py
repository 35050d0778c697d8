"""
Integration tests against PostgreSQL with pgvector.

Run with:
    pytest --run-integration tests/integration

DATABASE_URL must point at a disposable database; every test creates and
drops all tables.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from reelsense.core.config import settings
from reelsense.db.base import Base, utcnow
from reelsense.models.content import ContentItem, ContentStatus, Vote
from reelsense.models.conversation import Turn, TurnRole
from reelsense.models.user import Follow, User
from reelsense.services.content_store import ContentStore
from reelsense.services.rag.conversation_service import ConversationService
from reelsense.services.search.vector_index import VectorIndex

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


def vec(*head: float) -> list[float]:
    return list(head) + [0.0] * (settings.EMBEDDING_DIMENSION - len(head))


# ================================
# Database Fixtures
# ================================

@pytest_asyncio.fixture
async def db_session():
    """Fresh schema per test; NullPool so nothing outlives the test's loop."""
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(db_session: AsyncSession) -> dict:
    creator = User(email="chef@example.com", username="chef")
    viewer = User(email="viewer@example.com", username="viewer")
    db_session.add_all([creator, viewer])
    await db_session.flush()

    now = utcnow()
    items = [
        ContentItem(creator_id=creator.id, title="Pasta night", description="fresh tagliatelle",
                    video_url="https://cdn/1.mp4", status=ContentStatus.APPROVED,
                    embedding=vec(1.0, 0.1), created_at=now - timedelta(hours=3)),
        ContentItem(creator_id=creator.id, title="Ramen basics", description=None,
                    video_url="https://cdn/2.mp4", status=ContentStatus.APPROVED,
                    embedding=vec(1.0, 0.5), created_at=now - timedelta(hours=2)),
        ContentItem(creator_id=creator.id, title="Pending pasta", description=None,
                    video_url="https://cdn/3.mp4", status=ContentStatus.PENDING,
                    embedding=vec(1.0, 0.0), created_at=now - timedelta(hours=1)),
        ContentItem(creator_id=creator.id, title="Knife skills", description=None,
                    video_url="https://cdn/4.mp4", status=ContentStatus.APPROVED,
                    created_at=now),
    ]
    db_session.add_all(items)
    await db_session.flush()

    db_session.add_all([
        Vote(user_id=viewer.id, content_item_id=items[1].id),
        Follow(follower_id=viewer.id, following_id=creator.id),
    ])
    await db_session.commit()

    return {"creator": creator, "viewer": viewer, "items": items}


# ================================
# Catalog
# ================================

async def test_get_items_keeps_order_and_skips_unapproved(db_session, seeded):
    store = ContentStore(db_session)
    ids = [item.id for item in seeded["items"]]

    result = await store.get_items([ids[3], ids[2], ids[0]])

    assert [item.id for item in result] == [ids[3], ids[0]]
    assert result[1].creator.username == "chef"


async def test_vote_counts_and_popular(db_session, seeded):
    store = ContentStore(db_session)
    ids = [item.id for item in seeded["items"]]

    popular = await store.popular(limit=10)

    assert popular[0].id == ids[1]
    assert popular[0].vote_count == 1
    assert ids[2] not in [item.id for item in popular]


async def test_lexical_search_is_case_insensitive(db_session, seeded):
    store = ContentStore(db_session)

    result = await store.lexical_search("PASTA", limit=10)

    assert [item.title for item in result] == ["Pasta night"]


async def test_social_graph(db_session, seeded):
    store = ContentStore(db_session)
    viewer = seeded["viewer"]

    assert await store.followed_creator_ids(viewer.id) == [seeded["creator"].id]
    assert await store.endorsed_ids(viewer.id) == {seeded["items"][1].id}


async def test_write_embedding_sets_vector_and_timestamp(db_session, seeded):
    store = ContentStore(db_session)
    item_id = seeded["items"][3].id

    assert await store.missing_embedding_ids() == [item_id]
    assert await store.write_embedding(item_id, vec(0.0, 1.0))

    row = (await db_session.execute(
        select(ContentItem.embedding_updated_at).where(ContentItem.id == item_id)
    )).scalar_one()
    assert row is not None
    assert await store.missing_embedding_ids() == []
    assert not await store.write_embedding(999999, vec(1.0))


# ================================
# Vector index
# ================================

async def test_nearest_ranks_approved_items(db_session, seeded):
    index = VectorIndex(db_session)
    ids = [item.id for item in seeded["items"]]

    results = await index.nearest(vec(1.0, 0.0), k=10, min_similarity=0.5)

    assert [r.id for r in results] == [ids[0], ids[1]]
    assert results[0].similarity > results[1].similarity


async def test_nearest_to_item_excludes_itself(db_session, seeded):
    index = VectorIndex(db_session)
    ids = [item.id for item in seeded["items"]]

    results = await index.nearest_to_item(ids[0], k=10)

    assert [r.id for r in results] == [ids[1]]
    assert await index.nearest_to_item(ids[3], k=10) == []


# ================================
# Conversations
# ================================

async def test_conversation_lifecycle(db_session, seeded):
    service = ConversationService(db_session)
    viewer = seeded["viewer"]

    conversation = await service.create_conversation(viewer.id, title="x" * 80)
    assert conversation.title == "x" * 50

    await service.add_turn(conversation.id, TurnRole.USER, "hello")
    await service.add_turn(conversation.id, TurnRole.ASSISTANT, "hi!", [seeded["items"][0].id])

    turns = await service.list_turns(conversation.id)
    assert [(t.role, t.content) for t in turns] == [("user", "hello"), ("assistant", "hi!")]
    assert turns[1].content_item_ids == (seeded["items"][0].id,)

    refreshed = await service.get_conversation(conversation.id, viewer.id)
    assert refreshed.updated_at >= conversation.updated_at
    assert await service.get_conversation(conversation.id, seeded["creator"].id) is None


async def test_delete_cascades_to_turns(db_session, seeded):
    service = ConversationService(db_session)
    viewer = seeded["viewer"]

    conversation = await service.create_conversation(viewer.id, title="bye")
    await service.add_turn(conversation.id, TurnRole.USER, "hello")

    assert await service.delete_conversation(conversation.id, viewer.id)
    assert not await service.delete_conversation(conversation.id, viewer.id)

    remaining = (await db_session.execute(
        select(Turn).where(Turn.conversation_id == conversation.id)
    )).scalars().all()
    assert remaining == []
