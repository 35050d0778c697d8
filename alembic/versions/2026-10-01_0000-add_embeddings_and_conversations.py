"""add content embeddings, conversations and conversation turns

Revision ID: 5b1e0c7d9a42
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b1e0c7d9a42'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSION = 1536


def upgrade() -> None:
    """
    Add semantic search and chat storage.

    1. content_items.embedding / embedding_updated_at
    2. HNSW cosine index on content_items.embedding
    3. conversations - assistant chat sessions
    4. conversation_turns - append-only messages with linked item ids
    """

    # ================================
    # Enable pgvector extension if not already enabled
    # ================================
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    # ================================
    # Embedding columns on content_items
    # ================================
    op.add_column(
        'content_items',
        sa.Column('embedding', Vector(EMBEDDING_DIMENSION), nullable=True, comment='Semantic embedding of title + description')
    )
    op.add_column(
        'content_items',
        sa.Column('embedding_updated_at', sa.DateTime(timezone=True), nullable=True, comment='When the embedding was last written (UTC)')
    )

    # m=16 (max connections per layer), ef_construction=64 (quality during build)
    op.execute("""
        CREATE INDEX ix_content_items_embedding_hnsw
        ON content_items
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 64)
    """)

    # ================================
    # Create conversations table
    # ================================
    op.create_table(
        'conversations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='Auto-incrementing primary key'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was last updated (UTC)'),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='Owning user'),
        sa.Column('title', sa.String(length=255), nullable=True, comment='Conversation title (first message excerpt)'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_conversations_user_id_users'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_conversations')),
    )
    op.create_index(op.f('ix_conversations_user_id'), 'conversations', ['user_id'], unique=False)
    op.create_index('ix_conversations_user_updated', 'conversations', ['user_id', 'updated_at'], unique=False)

    # ================================
    # Create conversation_turns table
    # ================================
    turn_role = postgresql.ENUM('user', 'assistant', name='turn_role', create_type=False)
    turn_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'conversation_turns',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='Auto-incrementing primary key'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was last updated (UTC)'),
        sa.Column('conversation_id', sa.Integer(), nullable=False, comment='Parent conversation'),
        sa.Column('role', turn_role, nullable=False, comment='user or assistant'),
        sa.Column('content', sa.Text(), nullable=False, comment='Message text'),
        sa.Column('content_item_ids', postgresql.ARRAY(sa.Integer()), nullable=False, server_default='{}', comment='Ordered ids of content items surfaced for this turn'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], name=op.f('fk_conversation_turns_conversation_id_conversations'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_conversation_turns')),
    )
    op.create_index(op.f('ix_conversation_turns_conversation_id'), 'conversation_turns', ['conversation_id'], unique=False)
    op.create_index('ix_conversation_turns_order', 'conversation_turns', ['conversation_id', 'created_at', 'id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_conversation_turns_order', table_name='conversation_turns')
    op.drop_index(op.f('ix_conversation_turns_conversation_id'), table_name='conversation_turns')
    op.drop_table('conversation_turns')
    postgresql.ENUM(name='turn_role').drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_conversations_user_updated', table_name='conversations')
    op.drop_index(op.f('ix_conversations_user_id'), table_name='conversations')
    op.drop_table('conversations')

    op.execute('DROP INDEX IF EXISTS ix_content_items_embedding_hnsw')
    op.drop_column('content_items', 'embedding_updated_at')
    op.drop_column('content_items', 'embedding')
