"""Initial database models

Revision ID: 001_initial_models
Revises: 
Create Date: 2026-10-18

Creates the project tables:
- projects
- content_blocks
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001_initial_models'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create projects and content_blocks."""

    # Projects table (slug is indexed but deliberately not unique)
    op.create_table(
        'projects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('slug', sa.String(255), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('tags', postgresql.ARRAY(sa.String(100)), nullable=False, server_default='{}'),
        sa.Column('image', sa.Text(), nullable=False),
        sa.Column('github_url', sa.String(512), nullable=True),
        sa.Column('custom_buttons', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Content blocks table; rows go with their project
    op.create_table(
        'content_blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('content', postgresql.JSONB(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "type IN ('paragraph', 'heading', 'quote', 'image', 'list')",
            name='ck_content_blocks_type',
        ),
    )

    # Listing sorts by created_at; block reads sort by order_index within a project
    op.create_index('idx_projects_created_at', 'projects', ['created_at'])
    op.create_index('idx_content_blocks_project_order', 'content_blocks', ['project_id', 'order_index'])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_index('idx_content_blocks_project_order', table_name='content_blocks')
    op.drop_index('idx_projects_created_at', table_name='projects')

    op.drop_table('content_blocks')
    op.drop_table('projects')
