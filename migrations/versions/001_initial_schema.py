"""Initial schema for the listings cache.

Creates tables: city_snapshots, movies

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create city_snapshots table (one header per city)
    op.create_table(
        'city_snapshots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('captured_at', sa.DateTime(), nullable=False),
        sa.Column('entry_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_city_snapshots_id'), 'city_snapshots', ['id'], unique=False)
    op.create_index(op.f('ix_city_snapshots_city'), 'city_snapshots', ['city'], unique=True)
    op.create_index(op.f('ix_city_snapshots_captured_at'), 'city_snapshots', ['captured_at'], unique=False)

    # Create movies table
    op.create_table(
        'movies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('href', sa.String(length=1000), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('scraped_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('city', 'href', name='uq_movies_city_href'),
    )
    op.create_index(op.f('ix_movies_id'), 'movies', ['id'], unique=False)
    op.create_index(op.f('ix_movies_city'), 'movies', ['city'], unique=False)
    op.create_index(op.f('ix_movies_scraped_at'), 'movies', ['scraped_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_movies_scraped_at'), table_name='movies')
    op.drop_index(op.f('ix_movies_city'), table_name='movies')
    op.drop_index(op.f('ix_movies_id'), table_name='movies')
    op.drop_table('movies')

    op.drop_index(op.f('ix_city_snapshots_captured_at'), table_name='city_snapshots')
    op.drop_index(op.f('ix_city_snapshots_city'), table_name='city_snapshots')
    op.drop_index(op.f('ix_city_snapshots_id'), table_name='city_snapshots')
    op.drop_table('city_snapshots')
