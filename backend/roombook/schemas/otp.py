from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from .common import NotificationStatus, check_email


class OtpSendRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_address(cls, value: str) -> str:
        return check_email(value)


class OtpVerifyRequest(OtpSendRequest):
    otp: str

    @field_validator("otp")
    @classmethod
    def check_code(cls, value: str) -> str:
        value = value.strip()
        if not value.isdigit():
            raise ValueError("OTP must contain digits only.")
        return value


class OtpSendResponse(BaseModel):
    success: bool = True
    message: str
    expires_at: datetime
    notification: NotificationStatus


class OtpVerifyResponse(BaseModel):
    success: bool = True
    verified: bool
    message: str


class OtpStatusResponse(BaseModel):
    success: bool = True
    is_verified: bool
    verified_at: Optional[datetime] = None


class OtpCleanupResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int
