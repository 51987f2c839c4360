from fastapi import APIRouter

from roombook.api.v1 import admin, bookings, health, otp, rooms


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(rooms.router, prefix="/rooms", tags=["rooms"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(otp.router, prefix="/otp", tags=["otp"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
