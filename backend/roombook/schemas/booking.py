from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from roombook.core.clock import to_naive_utc

from .common import NotificationStatus, check_email


class BookingWrite(BaseModel):
    room_id: int
    subject: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    organizer_email: str
    start_datetime: datetime
    end_datetime: datetime
    total_participants: int
    internal_participants: Optional[int] = Field(default=None, ge=0)
    external_participants: Optional[int] = Field(default=None, ge=0)
    meeting_type: Optional[str] = Field(default=None, max_length=50)
    attendee_emails: List[str] = []

    @field_validator("subject")
    @classmethod
    def check_subject(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Subject is required and cannot be empty")
        return value

    @field_validator("organizer_email")
    @classmethod
    def check_organizer_email(cls, value: str) -> str:
        return check_email(value)

    @field_validator("total_participants")
    @classmethod
    def check_total_participants(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Total participants must be at least 1.")
        return value

    @field_validator("start_datetime")
    @classmethod
    def normalize_start(cls, start: datetime) -> datetime:
        return to_naive_utc(start)

    @field_validator("end_datetime")
    @classmethod
    def check_ends_after_start(cls, end: datetime, info: ValidationInfo) -> datetime:
        end = to_naive_utc(end)
        start: datetime | None = info.data.get("start_datetime")
        if start and end <= start:
            raise ValueError("Start date/time must be before end date/time")
        return end

    @field_validator("attendee_emails", mode="before")
    @classmethod
    def parse_attendees(cls, value: List[str] | str | None) -> List[str]:
        """Accept a list or the JSON-encoded array the web client sends."""
        if value is None or value == "":
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ValueError("attendee_emails must be a JSON array of emails") from None
            if not isinstance(value, list):
                raise ValueError("attendee_emails must be a JSON array of emails")
        return value

    @field_validator("attendee_emails")
    @classmethod
    def check_attendees(cls, value: List[str]) -> List[str]:
        return [check_email(email) for email in value]


class BookingCancel(BaseModel):
    organizer_email: str = Field(
        validation_alias=AliasChoices("organizer_email", "organizerEmail")
    )

    @field_validator("organizer_email")
    @classmethod
    def check_organizer_email(cls, value: str) -> str:
        return check_email(value)


class BookingRead(BaseModel):
    event_id: str
    room_id: int
    room_name: str
    subject: str
    description: Optional[str] = None
    organizer_email: str
    start_datetime: datetime
    end_datetime: datetime
    total_participants: int
    internal_participants: Optional[int] = None
    external_participants: Optional[int] = None
    meeting_type: str
    attendee_emails: List[str] = []
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("attendee_emails", mode="before")
    @classmethod
    def decode_attendees(cls, value: List[str] | str | None) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except ValueError:
                return []
            return decoded if isinstance(decoded, list) else []
        return value


class BookingListResponse(BaseModel):
    success: bool = True
    data: List[BookingRead]
    count: int


class BookingMutationResponse(BaseModel):
    success: bool = True
    message: str
    event_id: str
    booking: Optional[BookingRead] = None
    notification: NotificationStatus
