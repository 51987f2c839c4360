"""HTML bodies for booking and OTP emails. Every interpolated value is escaped."""

from __future__ import annotations

from datetime import datetime
from html import escape
from zoneinfo import ZoneInfo

from roombook.models import RoomBooking

TIME_FORMAT = "%d %b %Y, %H:%M"


def _local(value: datetime, tz_name: str) -> str:
    aware = value.replace(tzinfo=ZoneInfo("UTC")).astimezone(ZoneInfo(tz_name))
    return aware.strftime(TIME_FORMAT)


def _greeting(email: str) -> str:
    return f"<p>Dear {escape(email.split('@')[0])},</p>"


def _details(booking: RoomBooking, tz_name: str, time_label: str = "Time") -> str:
    start = _local(booking.start_datetime, tz_name)
    end = _local(booking.end_datetime, tz_name)
    return (
        "<ul>"
        f"<li><strong>Room:</strong> {escape(booking.room_name)}</li>"
        f"<li><strong>Subject:</strong> {escape(booking.subject)}</li>"
        f"<li><strong>{time_label}:</strong> {start} - {end} ({escape(tz_name)})</li>"
        f"<li><strong>Total Participants:</strong> {booking.total_participants}</li>"
        "</ul>"
    )


def booking_confirmed(booking: RoomBooking, tz_name: str, by_admin: bool = False) -> tuple[str, str]:
    subject = f"Booking Confirmed: {booking.subject} at {booking.room_name}"
    intro = (
        "<p>A room booking has been made for you by the administrator.</p>"
        if by_admin
        else "<p>Your room booking has been successfully confirmed!</p>"
    )
    html = (
        _greeting(booking.organizer_email)
        + intro
        + "<p><strong>Booking Details:</strong></p>"
        + _details(booking, tz_name)
        + f"<p>Booking reference: {escape(booking.event_id)}</p>"
        + "<p>Thank you!</p>"
    )
    return subject, html


def booking_rescheduled(booking: RoomBooking, tz_name: str) -> tuple[str, str]:
    subject = f"Booking Rescheduled: {booking.subject} at {booking.room_name}"
    html = (
        _greeting(booking.organizer_email)
        + "<p>Your room booking has been successfully rescheduled!</p>"
        + "<p><strong>Updated Booking Details:</strong></p>"
        + _details(booking, tz_name, time_label="New Time")
        + "<p>Thank you!</p>"
    )
    return subject, html


def booking_cancelled(booking: RoomBooking, tz_name: str, by_admin: bool = False) -> tuple[str, str]:
    start = _local(booking.start_datetime, tz_name)
    end = _local(booking.end_datetime, tz_name)
    room = escape(booking.room_name)
    if by_admin:
        subject = f'Your Room Booking for "{booking.subject}" Has Been Cancelled (Admin Action)'
        body = (
            f"<p>Please be informed that your room booking for <strong>{room}</strong> "
            f"scheduled from <strong>{start}</strong> to <strong>{end}</strong> "
            "has been cancelled by the administrator.</p>"
            "<p>If you have any questions, please contact support.</p>"
        )
    else:
        subject = f'Your Room Booking for "{booking.subject}" Has Been Cancelled'
        body = (
            f"<p>Your booking for the room <strong>{room}</strong> "
            f"scheduled from <strong>{start}</strong> to <strong>{end}</strong> "
            "has been successfully cancelled.</p>"
        )
    return subject, _greeting(booking.organizer_email) + body + "<p>Thank you!</p>"


def admin_message(event_id: str, organizer_email: str, subject: str, message: str) -> tuple[str, str]:
    html = (
        _greeting(organizer_email)
        + f"<p>Regarding your booking (ID: {escape(event_id)}):</p>"
        + f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        + "<p><strong>Message from Administrator:</strong></p>"
        + '<div style="border: 1px solid #ccc; padding: 10px; margin: 15px 0; background-color: #f9f9f9;">'
        + f"<p>{escape(message)}</p></div>"
        + "<p>Please contact us to discuss rescheduling or other options.</p>"
        + "<p>Thank you.</p>"
    )
    return f"RE: {subject}", html


def otp_code(code: str, ttl_minutes: int, year: int) -> tuple[str, str]:
    subject = f"Your Room Booking Verification Code: {code}"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 20px auto; border: 1px solid #e0e0e0; border-radius: 8px;">
  <div style="background-color: #007bff; color: #ffffff; padding: 20px 25px; text-align: center;">
    <h1 style="margin: 0; font-size: 24px;">Room Booking System</h1>
  </div>
  <div style="padding: 25px; background-color: #f9f9f9;">
    <p>Dear User,</p>
    <p>To complete your room booking verification, please use the One-Time Password (OTP) below:</p>
    <div style="text-align: center; margin: 30px 0;">
      <span style="font-size: 36px; font-weight: bold; letter-spacing: 3px;">{escape(code)}</span>
    </div>
    <p style="text-align: center;">This OTP is valid for <strong>{ttl_minutes} minutes</strong>.</p>
    <p style="text-align: center;">Please do not share this code with anyone.</p>
  </div>
  <div style="padding: 20px 25px; text-align: center; font-size: 12px; color: #888;">
    <p>If you did not request this OTP, please ignore this email or contact support immediately.</p>
    <p>&copy; {year} Room Booking System.</p>
  </div>
</div>
"""
    return subject, html
