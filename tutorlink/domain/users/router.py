"""User router - account management, profile uploads and the tutee's bookings"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_tutee
from ...database import get_db
from ...models import User
from ..payments.schemas import PaymentResponse
from ..payments.service import PaymentService
from ..tutors.booking_service import BookingService
from ..tutors.schemas import BookingResponse
from .schemas import (
    AdminPasswordReset,
    AdminProfileResponse,
    AdminQrResponse,
    TuteeBookingResponse,
    UpcomingSessionResponse,
    UserResponse,
    UserStatusUpdate,
    UserUpdate,
)
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# SIGNED-IN USER
# ============================================================================


@router.get("/me/bookings", response_model=list[TuteeBookingResponse])
async def my_bookings(
    current_user: User = Depends(require_tutee),
    service: UserService = Depends(get_user_service),
):
    """The tutee's booking requests, newest first"""
    return service.tutee_bookings(current_user)


@router.post("/me/bookings/{booking_id}/payment-proof", response_model=PaymentResponse)
async def upload_payment_proof(
    booking_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(require_tutee),
    db: Session = Depends(get_db),
):
    return await PaymentService(db).submit_proof(booking_id, file, current_user)


@router.post("/me/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    current_user: User = Depends(require_tutee),
    db: Session = Depends(get_db),
):
    return BookingService(db).cancel_by_tutee(booking_id, current_user)


@router.get("/upcoming-sessions/list", response_model=list[UpcomingSessionResponse])
async def upcoming_sessions(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Upcoming sessions over the next 30 days, soonest first"""
    return service.upcoming_sessions(current_user)


@router.get("/upcoming-sessions/has")
async def has_upcoming_sessions(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return {"hasUpcoming": service.has_upcoming(current_user)}


@router.get("/admins-with-qr", response_model=list[AdminQrResponse])
async def admins_with_qr(
    _: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Admin payment QR codes shown to tutees at checkout"""
    return service.admins_with_qr()


# ============================================================================
# ADMIN USER MANAGEMENT
# ============================================================================


@router.get("", response_model=list[UserResponse])
async def list_users(
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.list_users()


@router.patch("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.update_status(user_id, data.status)


@router.patch("/{user_id}/reset-password")
async def reset_user_password(
    user_id: int,
    data: AdminPasswordReset,
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.reset_password(user_id, data.newPassword)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Admins can edit anyone; other users only themselves and never their status"""
    return service.update_user(user_id, data, current_user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(user_id, current_user)


# ============================================================================
# PROFILES & UPLOADS
# ============================================================================


@router.get("/{user_id}/admin-profile", response_model=AdminProfileResponse)
async def admin_profile(
    user_id: int,
    _: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.admin_profile(user_id)


@router.post("/{user_id}/admin-qr")
async def upload_admin_qr(
    user_id: int,
    file: UploadFile = File(...),
    _: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return await service.upload_admin_qr(user_id, file)


@router.post("/{user_id}/profile-image")
async def upload_profile_image(
    user_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.upload_profile_image(user_id, file, current_user)
