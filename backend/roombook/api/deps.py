from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer

from roombook.core.clock import Clock, utcnow
from roombook.core.config import Settings, get_settings, settings as app_settings
from roombook.core.errors import Unauthorized
from roombook.core.security import (
    AdminAuthenticator,
    AdminPrincipal,
    SettingsAdminAuthenticator,
    verify_admin_token,
)
from roombook.db import SessionDep
from roombook.services.bookings import BookingService
from roombook.services.mailer import Mailer
from roombook.services.otp import OtpService
from roombook.services.rooms import RoomImageStore, RoomService

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{app_settings.API_V1_STR}/admin/login", auto_error=False
)

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_mailer(request: Request) -> Mailer:
    # Built once by the application factory; the Graph token cache lives on it
    return request.app.state.mailer


def get_clock() -> Clock:
    return utcnow


MailerDep = Annotated[Mailer, Depends(get_mailer)]
ClockDep = Annotated[Clock, Depends(get_clock)]


def get_booking_service(
    session: SessionDep, settings: SettingsDep, mailer: MailerDep, clock: ClockDep
) -> BookingService:
    return BookingService(session, settings, mailer, clock)


def get_otp_service(
    session: SessionDep, settings: SettingsDep, mailer: MailerDep, clock: ClockDep
) -> OtpService:
    return OtpService(session, settings, mailer, clock)


def get_room_images(settings: SettingsDep) -> RoomImageStore:
    return RoomImageStore(settings.UPLOAD_DIR, settings.MAX_IMAGE_SIZE)


def get_room_service(
    session: SessionDep,
    settings: SettingsDep,
    images: Annotated[RoomImageStore, Depends(get_room_images)],
) -> RoomService:
    return RoomService(session, settings, images)


def get_admin_authenticator(settings: SettingsDep) -> AdminAuthenticator:
    return SettingsAdminAuthenticator(settings)


def get_current_admin(
    settings: SettingsDep,
    bearer: Optional[str] = Depends(oauth2_scheme),
    x_admin_auth: Optional[str] = Header(default=None),
) -> AdminPrincipal:
    token = bearer or x_admin_auth
    if not token:
        raise Unauthorized("Unauthorized: Admin access required.")
    try:
        return verify_admin_token(token, settings)
    except ValueError:
        raise Unauthorized("Unauthorized: Admin access required.") from None


BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
OtpServiceDep = Annotated[OtpService, Depends(get_otp_service)]
RoomServiceDep = Annotated[RoomService, Depends(get_room_service)]
RoomImagesDep = Annotated[RoomImageStore, Depends(get_room_images)]
AdminDep = Annotated[AdminPrincipal, Depends(get_current_admin)]
