"""Initial EventEase schema with capacity and uniqueness constraints

Revision ID: 3c1f8e2a9b70
Revises: 
Create Date: 2026-10-19 10:40:12.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f8e2a9b70'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    role_enum = postgresql.ENUM('attendee', 'organizer', 'admin', name='roleenum')
    role_enum.create(op.get_bind())

    status_enum = postgresql.ENUM('active', 'cancelled', 'completed', name='eventstatusenum')
    status_enum.create(op.get_bind())

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', postgresql.ENUM(name='roleenum', create_type=False), nullable=False, server_default='attendee'),
        sa.Column('is_blocked', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('reset_token_hash', sa.String(64), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_reset_token_hash', 'users', ['reset_token_hash'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text, nullable=True),
    )

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('time', sa.Time, nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('organizer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('max_attendees', sa.Integer, nullable=False),
        sa.Column('registered_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('status', postgresql.ENUM(name='eventstatusenum', create_type=False), nullable=False, server_default='active'),
        sa.Column('cancellation_reason', sa.Text, nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('max_attendees > 0', name='check_event_capacity_positive'),
        sa.CheckConstraint('registered_count >= 0', name='check_event_registered_non_negative'),
        sa.CheckConstraint('registered_count <= max_attendees', name='check_event_registered_lte_capacity'),
    )
    op.create_index('idx_event_date', 'events', ['date'])
    op.create_index('idx_event_organizer', 'events', ['organizer_id'])
    op.create_index('idx_event_category', 'events', ['category_id'])
    op.create_index('idx_event_created_at', 'events', ['created_at'])

    op.create_table(
        'registrations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_registration_event_user'),
    )
    op.create_index('idx_registration_user', 'registrations', ['user_id'])
    op.create_index('idx_registration_event', 'registrations', ['event_id'])

    op.create_table(
        'feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('comment', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_feedback_event_user'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='check_feedback_rating_range'),
    )
    op.create_index('idx_feedback_event', 'feedback', ['event_id'])


def downgrade() -> None:
    op.drop_index('idx_feedback_event', table_name='feedback')
    op.drop_table('feedback')

    op.drop_index('idx_registration_event', table_name='registrations')
    op.drop_index('idx_registration_user', table_name='registrations')
    op.drop_table('registrations')

    op.drop_index('idx_event_created_at', table_name='events')
    op.drop_index('idx_event_category', table_name='events')
    op.drop_index('idx_event_organizer', table_name='events')
    op.drop_index('idx_event_date', table_name='events')
    op.drop_table('events')

    op.drop_table('categories')

    op.drop_index('ix_users_reset_token_hash', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    sa.Enum(name='eventstatusenum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='roleenum').drop(op.get_bind(), checkfirst=True)
