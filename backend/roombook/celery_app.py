"""Celery application configuration."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import Celery

from roombook.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "roombook",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["roombook.tasks.otp"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    task_acks_late=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
)

# OTP cleanup is on demand unless an interval is configured
celery_app.conf.beat_schedule = {}
if settings.OTP_CLEANUP_INTERVAL_SECONDS > 0:
    celery_app.conf.beat_schedule["cleanup-expired-otps"] = {
        "task": "roombook.tasks.otp.cleanup_expired_otps_task",
        "schedule": timedelta(seconds=settings.OTP_CLEANUP_INTERVAL_SECONDS),
    }

logger.info(f"Celery app configured with broker: {settings.CELERY_BROKER_URL}")
