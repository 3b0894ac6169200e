"""Create discovered_creators, creator_snapshots, auto_discovery_rules

Revision ID: 3f9b1c7d2e60
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9b1c7d2e60'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Creators: one row per (platform, channel) --
    op.create_table(
        'discovered_creators',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('platform', sa.Text(), nullable=False),
        sa.Column('platform_user_id', sa.Text(), nullable=False),
        sa.Column('platform_username', sa.Text(), nullable=True),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('profile_image_url', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('followers', sa.Integer(), nullable=True),
        sa.Column('total_posts', sa.Integer(), nullable=True),
        sa.Column('avg_views', sa.Integer(), nullable=True),
        sa.Column('niche', sa.JSON(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='active'),
        sa.Column('is_hidden', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('growth_rate_7d', sa.Float(), nullable=True),
        sa.Column('growth_rate_30d', sa.Float(), nullable=True),
        sa.Column('discovered_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('last_scraped_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('platform', 'platform_user_id', name='uq_discovered_creator_platform_user'),
    )
    op.create_index('ix_discovered_creators_last_scraped_at', 'discovered_creators', ['last_scraped_at'])

    # -- Snapshots: at most one per creator per day --
    op.create_table(
        'creator_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('discovered_creator_id', sa.Integer(), nullable=False),
        sa.Column('platform', sa.Text(), nullable=False),
        sa.Column('platform_user_id', sa.Text(), nullable=False),
        sa.Column('followers', sa.Integer(), nullable=True),
        sa.Column('total_posts', sa.Integer(), nullable=True),
        sa.Column('snapshot_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['discovered_creator_id'], ['discovered_creators.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('discovered_creator_id', 'snapshot_date', name='uq_creator_snapshot_creator_date'),
    )

    # -- Rules --
    op.create_table(
        'auto_discovery_rules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('search_queries', sa.JSON(), nullable=False),
        sa.Column('target_niches', sa.JSON(), nullable=True),
        sa.Column('min_followers', sa.Integer(), nullable=True),
        sa.Column('max_followers', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('auto_discovery_rules')
    op.drop_table('creator_snapshots')
    op.drop_index('ix_discovered_creators_last_scraped_at', table_name='discovered_creators')
    op.drop_table('discovered_creators')
