"""initial schema: companies, users, requests, landscapes

Revision ID: 3c1f0a9b7d52
Revises:
Create Date: 2026-10-17 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9b7d52'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('companies',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('logo', sa.String(length=1024), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('domain')
    )

    op.create_table('users',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('image', sa.String(length=1024), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('company_id', sa.String(length=64), nullable=True),
        sa.Column('approval_status', sa.String(length=20), nullable=False),
        sa.Column('avatar', sa.String(length=1024), nullable=True),
        sa.Column('skills', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('experience', sa.Text(), nullable=True),
        sa.Column('industry', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('linkedin', sa.String(length=1024), nullable=True),
        sa.Column('availability', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_company', 'users', ['company_id'], unique=False)
    op.create_index('idx_users_role', 'users', ['role'], unique=False)

    op.create_table('requests',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=512), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('industry', sa.String(length=255), nullable=False),
        sa.Column('budget', sa.String(length=255), nullable=True),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('creator_id', sa.String(length=255), nullable=True),
        sa.Column('assigned_specialist_id', sa.String(length=255), nullable=True),
        sa.Column('action_needed', sa.Boolean(), nullable=False),
        sa.Column('specialist_note', sa.Text(), nullable=True),
        sa.Column('linked_project_id', sa.String(length=64), nullable=True),
        sa.Column('specialist_nda_signed', sa.Boolean(), nullable=False),
        sa.Column('acceptance_criteria', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('ac_status', sa.String(length=20), nullable=True),
        sa.Column('urgency', sa.String(length=20), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('attributes', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('attachments', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('comments', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_requests_creator', 'requests', ['creator_id', 'created_at'], unique=False)
    op.create_index('idx_requests_specialist', 'requests', ['assigned_specialist_id'], unique=False)

    op.create_table('landscapes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('scope', sa.String(length=300), nullable=False),
        sa.Column('document', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('scope')
    )


def downgrade() -> None:
    op.drop_table('landscapes')
    op.drop_index('idx_requests_specialist', table_name='requests')
    op.drop_index('idx_requests_creator', table_name='requests')
    op.drop_table('requests')
    op.drop_index('idx_users_role', table_name='users')
    op.drop_index('idx_users_company', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')
