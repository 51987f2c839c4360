from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from roombook.core.clock import utcnow


class OtpRecord(SQLModel, table=True):
    """The single active one-time code for an email address."""

    __tablename__ = "otp_storage"

    email: str = Field(primary_key=True, max_length=255)
    otp: str = Field(max_length=12)
    expires_at: datetime = Field(sa_type=DateTime, nullable=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    is_verified: bool = Field(default=False)
