"""Celery tasks for one-time codes."""

from __future__ import annotations

import logging

from sqlmodel import Session

from roombook.celery_app import celery_app
from roombook.core.config import get_settings
from roombook.db import get_engine
from roombook.services.mailer import build_mailer
from roombook.services.otp import OtpService

logger = logging.getLogger(__name__)


@celery_app.task(name="roombook.tasks.otp.cleanup_expired_otps_task")
def cleanup_expired_otps_task() -> dict:
    """Delete expired OTP records; scheduled by beat when an interval is configured."""
    settings = get_settings()
    with Session(get_engine()) as session:
        deleted = OtpService(session, settings, build_mailer(settings)).cleanup()
    logger.info(f"Scheduled OTP cleanup removed {deleted} records")
    return {"success": True, "deleted_count": deleted}
