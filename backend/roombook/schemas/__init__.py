from .admin import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminMessageRequest,
    AdminMessageResponse,
)
from .booking import (
    BookingCancel,
    BookingListResponse,
    BookingMutationResponse,
    BookingRead,
    BookingWrite,
)
from .common import MessageResponse, NotificationStatus, check_email
from .otp import (
    OtpCleanupResponse,
    OtpSendRequest,
    OtpSendResponse,
    OtpStatusResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
)
from .room import RoomMutationResponse, RoomRead

__all__ = [
    "AdminLoginRequest",
    "AdminLoginResponse",
    "AdminMessageRequest",
    "AdminMessageResponse",
    "BookingCancel",
    "BookingListResponse",
    "BookingMutationResponse",
    "BookingRead",
    "BookingWrite",
    "MessageResponse",
    "NotificationStatus",
    "OtpCleanupResponse",
    "OtpSendRequest",
    "OtpSendResponse",
    "OtpStatusResponse",
    "OtpVerifyRequest",
    "OtpVerifyResponse",
    "RoomMutationResponse",
    "RoomRead",
    "check_email",
]
