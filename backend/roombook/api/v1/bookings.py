from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, status

from roombook.api.deps import BookingServiceDep
from roombook.core.errors import ValidationFailed
from roombook.schemas import (
    BookingCancel,
    BookingListResponse,
    BookingMutationResponse,
    BookingRead,
    BookingWrite,
    NotificationStatus,
    check_email,
)
from roombook.services.bookings import BookingOutcome

router = APIRouter()


def mutation_response(outcome: BookingOutcome, message: str) -> BookingMutationResponse:
    return BookingMutationResponse(
        message=message,
        event_id=outcome.booking.event_id,
        booking=BookingRead.model_validate(outcome.booking),
        notification=NotificationStatus(
            sent=outcome.notification.success,
            error=outcome.notification.reason,
        ),
    )


def list_response(bookings: list) -> BookingListResponse:
    data = [BookingRead.model_validate(booking) for booking in bookings]
    return BookingListResponse(data=data, count=len(data))


@router.get("/", response_model=BookingListResponse, summary="List all bookings")
def list_bookings(service: BookingServiceDep) -> BookingListResponse:
    return list_response(service.list_all())


@router.get(
    "/events",
    response_model=BookingListResponse,
    summary="Confirmed bookings of a room on a date",
)
def list_room_bookings_on_date(
    service: BookingServiceDep,
    room_id: int = Query(..., alias="roomId"),
    start_date: str = Query(..., alias="startDate", description="YYYY-MM-DD or ISO timestamp"),
) -> BookingListResponse:
    try:
        day = date.fromisoformat(start_date.split("T")[0])
    except ValueError:
        raise ValidationFailed("startDate must be a date in YYYY-MM-DD format.") from None
    return list_response(service.list_for_room_on_date(room_id, day))


@router.get(
    "/by-email/{email}",
    response_model=BookingListResponse,
    summary="Confirmed bookings of an organizer",
)
def list_bookings_by_email(email: str, service: BookingServiceDep) -> BookingListResponse:
    try:
        email = check_email(email)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from None
    return list_response(service.list_for_email(email))


@router.get("/{event_id}", response_model=BookingRead, summary="Get booking by event id")
def get_booking(event_id: str, service: BookingServiceDep) -> BookingRead:
    return BookingRead.model_validate(service.get(event_id))


@router.post(
    "/",
    response_model=BookingMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
def create_booking(payload: BookingWrite, service: BookingServiceDep) -> BookingMutationResponse:
    outcome = service.create(payload)
    return mutation_response(outcome, "Booking created and confirmed successfully!")


@router.put(
    "/{event_id}",
    response_model=BookingMutationResponse,
    summary="Reschedule booking",
)
def reschedule_booking(
    event_id: str, payload: BookingWrite, service: BookingServiceDep
) -> BookingMutationResponse:
    outcome = service.reschedule(event_id, payload)
    return mutation_response(outcome, "Booking updated successfully!")


@router.post(
    "/{event_id}/cancel",
    response_model=BookingMutationResponse,
    summary="Cancel booking as its organizer",
)
def cancel_booking(
    event_id: str, payload: BookingCancel, service: BookingServiceDep
) -> BookingMutationResponse:
    outcome = service.cancel(event_id, payload.organizer_email)
    return mutation_response(outcome, "Booking cancelled successfully.")
