from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


class NotificationStatus(BaseModel):
    sent: bool
    error: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
