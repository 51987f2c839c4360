from fastapi import APIRouter, Request

from roombook.api.deps import OtpServiceDep
from roombook.core.config import get_settings
from roombook.core.errors import NotificationFailed, ValidationFailed
from roombook.core.limiter import limiter
from roombook.schemas import (
    NotificationStatus,
    OtpCleanupResponse,
    OtpSendRequest,
    OtpSendResponse,
    OtpStatusResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
    check_email,
)

router = APIRouter()


def otp_send_limit() -> str:
    # Looked up on every request, not at import
    return get_settings().OTP_SEND_RATE_LIMIT


@router.post("/send", response_model=OtpSendResponse, summary="Send a one-time code")
@limiter.limit(otp_send_limit)
def send_otp(request: Request, payload: OtpSendRequest, service: OtpServiceDep) -> OtpSendResponse:
    issued = service.send(payload.email)
    if not issued.notification.success:
        # The code stays stored; the client may ask for a new one
        raise NotificationFailed(
            "OTP generated but the email could not be sent.",
            detail=issued.notification.reason,
        )
    return OtpSendResponse(
        message="OTP sent successfully.",
        expires_at=issued.expires_at,
        notification=NotificationStatus(sent=True),
    )


@router.post("/verify", response_model=OtpVerifyResponse, summary="Verify a one-time code")
def verify_otp(payload: OtpVerifyRequest, service: OtpServiceDep) -> OtpVerifyResponse:
    service.verify(payload.email, payload.otp)
    return OtpVerifyResponse(verified=True, message="OTP verified successfully.")


@router.get("/status/{email}", response_model=OtpStatusResponse, summary="Email verification status")
def verification_status(email: str, service: OtpServiceDep) -> OtpStatusResponse:
    try:
        email = check_email(email)
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from None
    result = service.status(email)
    return OtpStatusResponse(is_verified=result.is_verified, verified_at=result.verified_at)


@router.post("/cleanup-expired", response_model=OtpCleanupResponse, summary="Delete expired codes")
def cleanup_expired(service: OtpServiceDep) -> OtpCleanupResponse:
    deleted = service.cleanup()
    return OtpCleanupResponse(
        message=f"Cleaned up {deleted} expired OTP records.",
        deleted_count=deleted,
    )
