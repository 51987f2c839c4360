from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

import bcrypt
from jose import JWTError, jwt

from roombook.core.config import Settings

logger = logging.getLogger(__name__)

ADMIN_TOKEN_TYPE = "admin"


@dataclass(frozen=True)
class AdminCredentials:
    email: str
    password: str


@dataclass(frozen=True)
class AdminPrincipal:
    email: str


class AdminAuthenticator(Protocol):
    """Checks admin credentials; returns the principal or None when rejected."""

    def verify(self, credentials: AdminCredentials) -> Optional[AdminPrincipal]:
        ...


class SettingsAdminAuthenticator:
    """Single admin account whose email and bcrypt hash come from settings."""

    def __init__(self, settings: Settings) -> None:
        self._email = settings.ADMIN_EMAIL
        self._password_hash = settings.ADMIN_PASSWORD_HASH

    def verify(self, credentials: AdminCredentials) -> Optional[AdminPrincipal]:
        if not self._email or not self._password_hash:
            logger.warning("Admin login attempted but no admin account is configured")
            return None
        if credentials.email.strip().lower() != self._email.strip().lower():
            return None
        if not verify_password(credentials.password, self._password_hash):
            return None
        return AdminPrincipal(email=self._email)


def create_admin_token(principal: AdminPrincipal, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "exp": now + timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES),
        "iat": now,
        "sub": principal.email,
        "type": ADMIN_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_admin_token(token: str, settings: Settings) -> AdminPrincipal:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        if payload.get("type") != ADMIN_TOKEN_TYPE:
            raise JWTError("Invalid token type")
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    subject = payload.get("sub")
    if not subject:
        raise ValueError("Invalid token")
    return AdminPrincipal(email=subject)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using bcrypt directly."""
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt directly."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")
