from .booking import STATUS_CANCELLED, STATUS_CONFIRMED, RoomBooking
from .otp import OtpRecord
from .room import Room

__all__ = [
    "OtpRecord",
    "Room",
    "RoomBooking",
    "STATUS_CANCELLED",
    "STATUS_CONFIRMED",
]
