"""create_booking_tables

Revision ID: 5b1e0c7d9a21
Revises:
Create Date: 2026-10-18 10:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c7d9a21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('features', sa.String(length=1000), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('capacity >= 1', name='ck_rooms_capacity_positive'),
    )
    op.create_index(op.f('ix_rooms_name'), 'rooms', ['name'], unique=False)

    op.create_table(
        'room_bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.String(length=36), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('room_name', sa.String(length=255), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=2000), nullable=True),
        sa.Column('organizer_email', sa.String(length=255), nullable=False),
        sa.Column('start_datetime', sa.DateTime(), nullable=False),
        sa.Column('end_datetime', sa.DateTime(), nullable=False),
        sa.Column('total_participants', sa.Integer(), nullable=False),
        sa.Column('internal_participants', sa.Integer(), nullable=True),
        sa.Column('external_participants', sa.Integer(), nullable=True),
        sa.Column('meeting_type', sa.String(length=50), nullable=False),
        sa.Column('attendee_emails', sa.String(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('start_datetime < end_datetime', name='ck_room_bookings_interval'),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name='ck_room_bookings_status'),
    )
    op.create_index(op.f('ix_room_bookings_event_id'), 'room_bookings', ['event_id'], unique=True)
    op.create_index(op.f('ix_room_bookings_room_id'), 'room_bookings', ['room_id'], unique=False)
    op.create_index(op.f('ix_room_bookings_organizer_email'), 'room_bookings', ['organizer_email'], unique=False)
    op.create_index(op.f('ix_room_bookings_start_datetime'), 'room_bookings', ['start_datetime'], unique=False)
    op.create_index(op.f('ix_room_bookings_end_datetime'), 'room_bookings', ['end_datetime'], unique=False)
    op.create_index(op.f('ix_room_bookings_status'), 'room_bookings', ['status'], unique=False)

    # PostgreSQL can refuse overlapping confirmed bookings on its own; other
    # backends rely on the room row lock taken by the booking service
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
        op.execute(
            """
            ALTER TABLE room_bookings
            ADD CONSTRAINT ex_room_bookings_no_overlap
            EXCLUDE USING gist (
                room_id WITH =,
                tsrange(start_datetime, end_datetime, '[)') WITH &&
            ) WHERE (status = 'confirmed')
            """
        )

    op.create_table(
        'otp_storage',
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('otp', sa.String(length=12), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('email'),
    )
    op.create_index(op.f('ix_otp_storage_expires_at'), 'otp_storage', ['expires_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_otp_storage_expires_at'), table_name='otp_storage')
    op.drop_table('otp_storage')
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('ALTER TABLE room_bookings DROP CONSTRAINT IF EXISTS ex_room_bookings_no_overlap')
    for column in ('status', 'end_datetime', 'start_datetime', 'organizer_email', 'room_id', 'event_id'):
        op.drop_index(op.f(f'ix_room_bookings_{column}'), table_name='room_bookings')
    op.drop_table('room_bookings')
    op.drop_index(op.f('ix_rooms_name'), table_name='rooms')
    op.drop_table('rooms')
