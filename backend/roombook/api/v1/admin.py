from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from roombook.api.deps import (
    AdminDep,
    BookingServiceDep,
    SettingsDep,
    get_admin_authenticator,
)
from roombook.api.v1.bookings import list_response, mutation_response
from roombook.core.errors import NotificationFailed, Unauthorized
from roombook.core.security import AdminAuthenticator, AdminCredentials, create_admin_token
from roombook.schemas import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminMessageRequest,
    AdminMessageResponse,
    BookingListResponse,
    BookingMutationResponse,
    BookingWrite,
    NotificationStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=AdminLoginResponse, summary="Admin login")
def admin_login(
    payload: AdminLoginRequest,
    settings: SettingsDep,
    authenticator: Annotated[AdminAuthenticator, Depends(get_admin_authenticator)],
) -> AdminLoginResponse:
    principal = authenticator.verify(
        AdminCredentials(email=payload.email, password=payload.password)
    )
    if principal is None:
        logger.warning(f"Rejected admin login for {payload.email}")
        raise Unauthorized("Invalid admin credentials.")
    return AdminLoginResponse(
        message="Admin login successful.",
        token=create_admin_token(principal, settings),
    )


@router.get("/bookings", response_model=BookingListResponse, summary="All bookings, newest first")
def admin_list_bookings(admin: AdminDep, service: BookingServiceDep) -> BookingListResponse:
    return list_response(service.list_all_for_admin())


@router.post(
    "/bookings",
    response_model=BookingMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking as admin",
)
def admin_create_booking(
    payload: BookingWrite, admin: AdminDep, service: BookingServiceDep
) -> BookingMutationResponse:
    outcome = service.create(payload, by_admin=True)
    logger.info(f"Admin {admin.email} created booking {outcome.booking.event_id}")
    return mutation_response(outcome, "Booking created by admin successfully.")


@router.put(
    "/bookings/{event_id}",
    response_model=BookingMutationResponse,
    summary="Reschedule any booking as admin",
)
def admin_reschedule_booking(
    event_id: str, payload: BookingWrite, admin: AdminDep, service: BookingServiceDep
) -> BookingMutationResponse:
    outcome = service.reschedule(event_id, payload, by_admin=True)
    logger.info(f"Admin {admin.email} rescheduled booking {event_id}")
    return mutation_response(outcome, "Booking updated by admin successfully.")


@router.delete(
    "/bookings/{event_id}",
    response_model=BookingMutationResponse,
    summary="Cancel any booking as admin",
)
def admin_cancel_booking(
    event_id: str, admin: AdminDep, service: BookingServiceDep
) -> BookingMutationResponse:
    outcome = service.admin_cancel(event_id)
    logger.info(f"Admin {admin.email} cancelled booking {event_id}")
    return mutation_response(outcome, "Booking cancelled by admin successfully.")


@router.post(
    "/send-reschedule-email",
    response_model=AdminMessageResponse,
    summary="Email an organizer about their booking",
)
def admin_send_message(
    payload: AdminMessageRequest, admin: AdminDep, service: BookingServiceDep
) -> AdminMessageResponse:
    result = service.send_admin_message(
        payload.event_id, payload.organizer_email, payload.subject, payload.message
    )
    if not result.success:
        raise NotificationFailed("Failed to send reschedule email.", detail=result.reason)
    return AdminMessageResponse(
        message="Reschedule email sent successfully.",
        notification=NotificationStatus(sent=True),
    )
