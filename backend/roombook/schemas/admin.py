from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .common import NotificationStatus, check_email


class AdminLoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)


class AdminLoginResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    token_type: str = "bearer"


class AdminMessageRequest(BaseModel):
    event_id: str = Field(validation_alias=AliasChoices("event_id", "bookingId"))
    organizer_email: str = Field(
        validation_alias=AliasChoices("organizer_email", "organizerEmail")
    )
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("organizer_email")
    @classmethod
    def check_organizer_email(cls, value: str) -> str:
        return check_email(value)


class AdminMessageResponse(BaseModel):
    success: bool = True
    message: str
    notification: NotificationStatus
