"""Create events, event tags and bookings

Revision ID: 3c9e1f2a7b40
Revises: 
Create Date: 2026-10-19 09:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1f2a7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('overview', sa.Text, nullable=False),
        sa.Column('image', sa.String(1024), nullable=False),
        sa.Column('venue', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('date', sa.String(10), nullable=False),
        sa.Column('time', sa.String(8), nullable=False),
        sa.Column('mode', sa.Enum('online', 'offline', 'hybrid', name='eventmode'), nullable=False),
        sa.Column('audience', sa.String(255), nullable=False),
        sa.Column('agenda', sa.JSON, nullable=False),
        sa.Column('organizer', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('uq_events_slug', 'events', ['slug'], unique=True)
    op.create_index('idx_event_created_at', 'events', ['created_at'])

    op.create_table(
        'event_tags',
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('position', sa.Integer, primary_key=True),
        sa.Column('tag', sa.String(100), nullable=False),
    )
    op.create_index('idx_event_tag', 'event_tags', ['tag'])

    # No foreign key on event_id: the reference is checked when a booking is written.
    op.create_table(
        'bookings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_booking_event', 'bookings', ['event_id'])
    op.create_index('idx_booking_slug', 'bookings', ['slug'])


def downgrade() -> None:
    op.drop_table('bookings')
    op.drop_table('event_tags')
    op.drop_table('events')
    sa.Enum(name='eventmode').drop(op.get_bind(), checkfirst=True)
