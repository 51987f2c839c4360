from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from roombook.core.clock import utcnow


class Room(SQLModel, table=True):
    """Meeting rooms available for booking."""

    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, index=True)
    capacity: int = Field(ge=1)
    features: Optional[str] = Field(default=None, max_length=1000)  # comma-separated
    image: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)

    def touch(self) -> None:
        self.updated_at = utcnow()
