"""Booking lifecycle: create, reschedule and cancel with capacity and overlap gates.

Every mutation runs in one transaction that first locks the affected room row,
so two writers racing for the same slot are serialised by the database. The
confirmation email goes out only after the commit; a failed send is reported
in the returned outcome and never undoes the stored change.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from roombook.core.clock import Clock, local_day_bounds, utcnow
from roombook.core.config import Settings
from roombook.core.errors import CapacityExceeded, Conflict, NotFound, ValidationFailed
from roombook.models import STATUS_CANCELLED, STATUS_CONFIRMED, Room, RoomBooking
from roombook.schemas import BookingWrite
from roombook.services import email_templates
from roombook.services.mailer import Mailer, SendResult
from roombook.services.otp import has_verified_otp

logger = logging.getLogger(__name__)

SLOT_TAKEN = "The room is already booked for the selected time slot."
SLOT_TAKEN_ON_RESCHEDULE = "The room is already booked for the new time slot (conflict detected)."
NOT_ELIGIBLE_FOR_CANCEL = "Booking not found or not eligible for cancellation by this email."


@dataclass
class BookingOutcome:
    booking: RoomBooking
    notification: SendResult


class BookingService:
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

    # Queries

    def list_all(self) -> List[RoomBooking]:
        statement = select(RoomBooking).order_by(RoomBooking.start_datetime.desc())
        return list(self.session.exec(statement).all())

    def list_all_for_admin(self) -> List[RoomBooking]:
        statement = select(RoomBooking).order_by(RoomBooking.created_at.desc())
        return list(self.session.exec(statement).all())

    def list_for_room_on_date(self, room_id: int, day: date) -> List[RoomBooking]:
        """Confirmed bookings of a room that overlap ``day`` in the booking timezone."""
        day_start, day_end = local_day_bounds(day, self.settings.BOOKING_TIMEZONE)
        statement = (
            select(RoomBooking)
            .where(RoomBooking.room_id == room_id)
            .where(RoomBooking.status == STATUS_CONFIRMED)
            .where(RoomBooking.start_datetime < day_end)
            .where(RoomBooking.end_datetime > day_start)
            .order_by(RoomBooking.start_datetime)
        )
        return list(self.session.exec(statement).all())

    def list_for_email(self, email: str) -> List[RoomBooking]:
        statement = (
            select(RoomBooking)
            .where(func.lower(RoomBooking.organizer_email) == email.strip().lower())
            .where(RoomBooking.status == STATUS_CONFIRMED)
            .order_by(RoomBooking.start_datetime)
        )
        return list(self.session.exec(statement).all())

    def get(self, event_id: str) -> RoomBooking:
        booking = self.session.exec(
            select(RoomBooking).where(RoomBooking.event_id == event_id)
        ).one_or_none()
        if not booking:
            raise NotFound("Booking not found.")
        return booking

    # Mutations

    def create(self, payload: BookingWrite, *, by_admin: bool = False) -> BookingOutcome:
        if not by_admin:
            self._check_not_in_past(payload.start_datetime)
            self._require_verified_email(payload.organizer_email)

        try:
            with self._transaction():
                room = self._lock_room(payload.room_id)
                if not room:
                    raise NotFound("Room not found.")
                if payload.total_participants > room.capacity:
                    raise CapacityExceeded(
                        f"Total participants exceed room capacity of {room.capacity}."
                    )
                if self._find_conflict(room.id, payload.start_datetime, payload.end_datetime):
                    raise Conflict(SLOT_TAKEN)

                booking = RoomBooking(
                    event_id=str(uuid4()),
                    room_id=room.id,
                    room_name=room.name,
                    status=STATUS_CONFIRMED,
                    organizer_email=payload.organizer_email,
                    created_at=self.clock(),
                    **self._booking_fields(payload),
                )
                self.session.add(booking)
        except IntegrityError as exc:
            # Raised by the PostgreSQL exclusion constraint when a concurrent
            # writer got the slot first
            raise Conflict(SLOT_TAKEN) from exc

        self.session.refresh(booking)
        logger.info(
            f"Booking {booking.event_id} created for room {booking.room_id} "
            f"by {booking.organizer_email}{' (admin)' if by_admin else ''}"
        )
        subject, html = email_templates.booking_confirmed(
            booking, self.settings.BOOKING_TIMEZONE, by_admin=by_admin
        )
        return BookingOutcome(booking, self._notify(booking.organizer_email, subject, html))

    def reschedule(
        self, event_id: str, payload: BookingWrite, *, by_admin: bool = False
    ) -> BookingOutcome:
        """Move a confirmed booking to a new room and/or time, keeping its event id."""
        if not by_admin:
            self._check_not_in_past(payload.start_datetime)

        try:
            with self._transaction():
                booking = self.session.exec(
                    select(RoomBooking)
                    .where(
                        RoomBooking.event_id == event_id,
                        RoomBooking.status == STATUS_CONFIRMED,
                    )
                    .with_for_update()
                ).one_or_none()
                if not booking:
                    raise NotFound("Original booking not found or already cancelled.")

                room = self._lock_room(payload.room_id)
                if not room:
                    raise NotFound("The specified room could not be found.")
                if payload.total_participants > room.capacity:
                    raise CapacityExceeded(
                        f"New total participants exceed room capacity of {room.capacity}."
                    )
                if self._find_conflict(
                    room.id,
                    payload.start_datetime,
                    payload.end_datetime,
                    exclude_event_id=event_id,
                ):
                    raise Conflict(SLOT_TAKEN_ON_RESCHEDULE)

                booking.room_id = room.id
                booking.room_name = room.name
                booking.organizer_email = payload.organizer_email
                for field, value in self._booking_fields(payload).items():
                    setattr(booking, field, value)
                booking.updated_at = self.clock()
                self.session.add(booking)
        except IntegrityError as exc:
            raise Conflict(SLOT_TAKEN_ON_RESCHEDULE) from exc

        self.session.refresh(booking)
        logger.info(f"Booking {event_id} rescheduled to room {booking.room_id}")
        subject, html = email_templates.booking_rescheduled(
            booking, self.settings.BOOKING_TIMEZONE
        )
        return BookingOutcome(booking, self._notify(booking.organizer_email, subject, html))

    def cancel(self, event_id: str, organizer_email: str) -> BookingOutcome:
        """Cancel on behalf of the organizer.

        A wrong email and an unknown event id produce the same error so callers
        cannot probe which bookings exist.
        """
        self._require_verified_email(organizer_email)
        return self._cancel(event_id, organizer_email=organizer_email)

    def admin_cancel(self, event_id: str) -> BookingOutcome:
        return self._cancel(event_id, organizer_email=None)

    def send_admin_message(
        self, event_id: str, organizer_email: str, subject: str, message: str
    ) -> SendResult:
        mail_subject, html = email_templates.admin_message(
            event_id, organizer_email, subject, message
        )
        return self._notify(organizer_email, mail_subject, html)

    # Helpers

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _cancel(self, event_id: str, organizer_email: Optional[str]) -> BookingOutcome:
        by_admin = organizer_email is None
        with self._transaction():
            statement = select(RoomBooking).where(
                RoomBooking.event_id == event_id,
                RoomBooking.status == STATUS_CONFIRMED,
            )
            if not by_admin:
                statement = statement.where(
                    func.lower(RoomBooking.organizer_email) == organizer_email.strip().lower()
                )
            booking = self.session.exec(statement.with_for_update()).one_or_none()
            if not booking:
                raise NotFound(
                    "Booking not found or already cancelled." if by_admin else NOT_ELIGIBLE_FOR_CANCEL
                )
            now = self.clock()
            booking.status = STATUS_CANCELLED
            booking.cancelled_at = now
            booking.updated_at = now
            self.session.add(booking)

        self.session.refresh(booking)
        logger.info(f"Booking {event_id} cancelled{' by admin' if by_admin else ''}")
        subject, html = email_templates.booking_cancelled(
            booking, self.settings.BOOKING_TIMEZONE, by_admin=by_admin
        )
        return BookingOutcome(booking, self._notify(booking.organizer_email, subject, html))

    def _lock_room(self, room_id: int) -> Optional[Room]:
        return self.session.exec(
            select(Room).where(Room.id == room_id).with_for_update()
        ).one_or_none()

    def _find_conflict(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        exclude_event_id: Optional[str] = None,
    ) -> Optional[RoomBooking]:
        # Half-open intervals: a booking ending at 10:00 does not clash with one starting at 10:00
        statement = select(RoomBooking).where(
            RoomBooking.room_id == room_id,
            RoomBooking.status == STATUS_CONFIRMED,
            RoomBooking.start_datetime < end,
            RoomBooking.end_datetime > start,
        )
        if exclude_event_id:
            statement = statement.where(RoomBooking.event_id != exclude_event_id)
        return self.session.exec(statement).first()

    def _booking_fields(self, payload: BookingWrite) -> dict:
        return {
            "subject": payload.subject,
            "description": payload.description or None,
            "start_datetime": payload.start_datetime,
            "end_datetime": payload.end_datetime,
            "total_participants": payload.total_participants,
            "internal_participants": payload.internal_participants,
            "external_participants": payload.external_participants,
            "meeting_type": payload.meeting_type or self.settings.DEFAULT_MEETING_TYPE,
            "attendee_emails": json.dumps(payload.attendee_emails),
        }

    def _check_not_in_past(self, start: datetime) -> None:
        earliest = self.clock() - timedelta(minutes=self.settings.BOOKING_PAST_GRACE_MINUTES)
        if start < earliest:
            raise ValidationFailed("Cannot create bookings in the past")

    def _require_verified_email(self, email: str) -> None:
        if not self.settings.REQUIRE_VERIFIED_EMAIL:
            return
        if not has_verified_otp(self.session, email, self.clock()):
            raise ValidationFailed("Email address has not been verified.")

    def _notify(self, to: str, subject: str, html: str) -> SendResult:
        try:
            result = self.mailer.send(to, subject, html)
        except Exception as exc:
            logger.error(f"Mailer raised while sending to {to}: {exc}", exc_info=True)
            return SendResult.failed("Failed to send email notification.")
        if not result.success:
            logger.warning(f"Notification to {to} not delivered: {result.reason}")
        return result
