from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from roombook.core.clock import Clock, utcnow
from roombook.core.config import Settings
from roombook.core.errors import ValidationFailed
from roombook.models import OtpRecord
from roombook.services import email_templates
from roombook.services.mailer import Mailer, SendResult

logger = logging.getLogger(__name__)

# One message for wrong and expired codes alike
INVALID_OR_EXPIRED = "Invalid or expired OTP."


@dataclass
class OtpIssued:
    email: str
    expires_at: datetime
    notification: SendResult


@dataclass
class OtpStatus:
    is_verified: bool
    verified_at: Optional[datetime] = None


def _normalize(email: str) -> str:
    return email.strip().lower()


def has_verified_otp(session: Session, email: str, now: datetime) -> bool:
    statement = select(OtpRecord).where(
        OtpRecord.email == _normalize(email),
        OtpRecord.is_verified == True,  # noqa: E712
        OtpRecord.expires_at > now,
    )
    return session.exec(statement).first() is not None


class OtpService:
    def __init__(
        self,
        session: Session,
        settings: Settings,
        mailer: Mailer,
        clock: Clock = utcnow,
    ) -> None:
        self.session = session
        self.settings = settings
        self.mailer = mailer
        self.clock = clock

    def generate_code(self) -> str:
        length = self.settings.OTP_LENGTH
        return f"{secrets.randbelow(10 ** length):0{length}d}"

    def send(self, email: str) -> OtpIssued:
        """Issue a fresh code for ``email``, replacing any earlier one, and mail it."""
        email = _normalize(email)
        now = self.clock()
        code = self.generate_code()
        expires_at = now + timedelta(minutes=self.settings.OTP_TTL_MINUTES)

        try:
            record = self.session.get(OtpRecord, email)
            if record is None:
                record = OtpRecord(email=email)
            record.otp = code
            record.expires_at = expires_at
            record.created_at = now
            record.is_verified = False
            self.session.add(record)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        subject, html = email_templates.otp_code(code, self.settings.OTP_TTL_MINUTES, now.year)
        try:
            result = self.mailer.send(email, subject, html)
        except Exception as exc:
            logger.error(f"Mailer raised while sending OTP to {email}: {exc}", exc_info=True)
            result = SendResult.failed("Failed to send email notification.")
        if result.success:
            logger.info(f"OTP issued for {email}, valid until {expires_at.isoformat()}")
        else:
            logger.warning(f"OTP stored for {email} but email not delivered: {result.reason}")
        return OtpIssued(email=email, expires_at=expires_at, notification=result)

    def verify(self, email: str, code: str) -> None:
        """Mark the code verified; raises ValidationFailed for wrong or expired codes."""
        length = self.settings.OTP_LENGTH
        if len(code) != length:
            raise ValidationFailed(f"OTP must be exactly {length} digits.")
        email = _normalize(email)
        now = self.clock()
        statement = (
            select(OtpRecord)
            .where(OtpRecord.email == email)
            .where(OtpRecord.otp == code)
            .where(OtpRecord.expires_at > now)
            .order_by(OtpRecord.created_at.desc())
        )
        try:
            record = self.session.exec(statement).first()
            if record is None:
                raise ValidationFailed(INVALID_OR_EXPIRED)
            record.is_verified = True
            self.session.add(record)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"OTP verified for {email}")

    def status(self, email: str) -> OtpStatus:
        statement = (
            select(OtpRecord)
            .where(OtpRecord.email == _normalize(email))
            .where(OtpRecord.is_verified == True)  # noqa: E712
            .where(OtpRecord.expires_at > self.clock())
            .order_by(OtpRecord.created_at.desc())
        )
        record = self.session.exec(statement).first()
        if record is None:
            return OtpStatus(is_verified=False)
        return OtpStatus(is_verified=True, verified_at=record.created_at)

    def cleanup(self) -> int:
        """Delete every record whose expiry lies before now; returns how many were removed."""
        try:
            result = self.session.exec(
                delete(OtpRecord).where(OtpRecord.expires_at < self.clock())
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        deleted = result.rowcount or 0
        logger.info(f"Cleaned up {deleted} expired OTP records")
        return deleted
