from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from roombook.core.clock import utcnow

STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"


class RoomBooking(SQLModel, table=True):
    """A reservation of a room; cancelled rows are kept, never deleted."""

    __tablename__ = "room_bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: str = Field(max_length=36, unique=True, index=True)
    # No foreign key: room_name keeps the booking readable after the room is gone
    room_id: int = Field(index=True)
    room_name: str = Field(max_length=255)
    subject: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    organizer_email: str = Field(max_length=255, index=True)
    start_datetime: datetime = Field(sa_type=DateTime, nullable=False, index=True)
    end_datetime: datetime = Field(sa_type=DateTime, nullable=False, index=True)
    total_participants: int
    internal_participants: Optional[int] = None
    external_participants: Optional[int] = None
    meeting_type: str = Field(default="in-person", max_length=50)
    attendee_emails: str = Field(default="[]")
    status: str = Field(default=STATUS_CONFIRMED, max_length=20, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
