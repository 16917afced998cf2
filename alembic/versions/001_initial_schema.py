"""Initial schema with users, teams, projects, files and section search

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

from docchat.db.functions import (
    CREATE_NEW_USER_TRIGGER_SQL,
    DROP_HANDLE_NEW_USER_SQL,
    DROP_MATCH_FILE_SECTIONS_SQL,
    DROP_NEW_USER_TRIGGER_SQL,
    HANDLE_NEW_USER_SQL,
    MATCH_FILE_SECTIONS_SQL,
)
from docchat.db.models import EMBEDDING_DIMENSION
from docchat.db.policies import (
    DROP_IS_TEAM_MEMBER_SQL,
    IS_TEAM_MEMBER_SQL,
    POLICIES,
    RLS_TABLES,
    disable_rls_sql,
    enable_rls_sql,
)


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

UTC_NOW = sa.text("timezone('utc'::text, now())")
UUID_V4 = sa.text("uuid_generate_v4()")

membership_type = postgresql.ENUM('viewer', 'admin', name='membership_type', create_type=False)


def upgrade() -> None:
    op.execute('create extension if not exists "uuid-ossp"')
    op.execute('create extension if not exists vector with schema public')

    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('has_completed_onboarding', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['id'], ['auth.users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    # Teams
    op.create_table(
        'teams',
        sa.Column('id', sa.Uuid(), server_default=UUID_V4, nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('is_personal', sa.Boolean(), server_default=sa.false(), nullable=True),
        sa.Column('stripe_customer_id', sa.Text(), nullable=True),
        sa.Column('stripe_price_id', sa.Text(), nullable=True),
        sa.Column('billing_cycle_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.execute("comment on table public.teams is 'Teams data.'")

    # Projects
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), server_default=UUID_V4, nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('public_api_key', sa.Text(), nullable=False),
        sa.Column('github_repo', sa.Text(), nullable=True),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('is_starter', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('public_api_key'),
    )
    op.create_index(op.f('ix_projects_team_id'), 'projects', ['team_id'], unique=False)
    op.execute("comment on table public.projects is 'Projects within a team.'")

    # Memberships
    membership_type.create(op.get_bind(), checkfirst=True)
    op.create_table(
        'memberships',
        sa.Column('id', sa.Uuid(), server_default=UUID_V4, nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('type', membership_type, nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_memberships_user_id'), 'memberships', ['user_id'], unique=False)
    op.create_index(op.f('ix_memberships_team_id'), 'memberships', ['team_id'], unique=False)
    op.execute("comment on table public.memberships is 'Memberships of a user in a team.'")

    # Domains
    op.create_table(
        'domains',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_domains_project_id'), 'domains', ['project_id'], unique=False)
    op.execute("comment on table public.domains is 'Domains associated to a project.'")

    # Tokens
    op.create_table(
        'tokens',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_tokens_project_id'), 'tokens', ['project_id'], unique=False)
    op.execute("comment on table public.tokens is 'Tokens associated to a project.'")

    # Files
    op.create_table(
        'files',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('path', sa.Text(), nullable=False),
        sa.Column('meta', postgresql.JSONB(), nullable=True),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=UTC_NOW, nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_files_project_id'), 'files', ['project_id'], unique=False)
    op.create_index('ix_files_project_path', 'files', ['project_id', 'path'], unique=False)

    # File sections
    op.create_table(
        'file_sections',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('file_id', sa.BigInteger(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('token_count', sa.Integer(), nullable=True),
        sa.Column('embedding', Vector(EMBEDDING_DIMENSION), nullable=True),
        sa.ForeignKeyConstraint(['file_id'], ['files.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_file_sections_file_id'), 'file_sections', ['file_id'], unique=False)

    # Row level security
    op.execute(IS_TEAM_MEMBER_SQL)
    for table in RLS_TABLES:
        op.execute(enable_rls_sql(table))
    for policy in POLICIES:
        op.execute(policy.create_sql())

    # Profile rows for new auth users
    op.execute(HANDLE_NEW_USER_SQL)
    op.execute(CREATE_NEW_USER_TRIGGER_SQL)

    # Similarity search
    op.execute(MATCH_FILE_SECTIONS_SQL)


def downgrade() -> None:
    op.execute(DROP_MATCH_FILE_SECTIONS_SQL)
    op.execute(DROP_NEW_USER_TRIGGER_SQL)
    op.execute(DROP_HANDLE_NEW_USER_SQL)

    for policy in reversed(POLICIES):
        op.execute(policy.drop_sql())
    for table in reversed(RLS_TABLES):
        op.execute(disable_rls_sql(table))
    op.execute(DROP_IS_TEAM_MEMBER_SQL)

    op.drop_index(op.f('ix_file_sections_file_id'), table_name='file_sections')
    op.drop_table('file_sections')

    op.drop_index('ix_files_project_path', table_name='files')
    op.drop_index(op.f('ix_files_project_id'), table_name='files')
    op.drop_table('files')

    op.drop_index(op.f('ix_tokens_project_id'), table_name='tokens')
    op.drop_table('tokens')

    op.drop_index(op.f('ix_domains_project_id'), table_name='domains')
    op.drop_table('domains')

    op.drop_index(op.f('ix_memberships_team_id'), table_name='memberships')
    op.drop_index(op.f('ix_memberships_user_id'), table_name='memberships')
    op.drop_table('memberships')
    membership_type.drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f('ix_projects_team_id'), table_name='projects')
    op.drop_table('projects')

    op.drop_table('teams')
    op.drop_table('users')
