"""User service - admin account management, profile uploads and tutee views"""

import logging
from datetime import date, timedelta

from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import User
from ...security_utils import hash_password
from ...storage import ADMIN_QR_DIR, PROFILE_IMAGES_DIR, delete_stored_file, save_upload
from .repository import UserRepository
from .schemas import (
    AdminProfileResponse,
    AdminQrResponse,
    TuteeBookingResponse,
    UpcomingSessionResponse,
    UserResponse,
    UserUpdate,
    build_user_response,
)

logger = logging.getLogger(__name__)

UPCOMING_LIST_DAYS = 30
UPCOMING_NOTICE_DAYS = 7

DELETE_BLOCKED_MESSAGE = (
    "Cannot delete this user because they have related records "
    "(bookings, payments or sessions). Deactivate the account instead."
)


class UserService:
    """Service layer for user accounts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_user(self, user_id: int) -> User:
        user = self.repo.get_user(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def list_users(self) -> list[UserResponse]:
        return [build_user_response(u) for u in self.repo.list_users(self.db)]

    def update_status(self, user_id: int, status: str) -> UserResponse:
        user = self.get_user(user_id)
        user.status = status
        self.db.commit()
        logger.info(f"🔄 User {user_id} status set to {status}")
        return build_user_response(user)

    def reset_password(self, user_id: int, new_password: str) -> dict:
        user = self.get_user(user_id)
        user.password = hash_password(new_password)
        self.db.commit()
        logger.info(f"🔐 Admin reset password for user {user_id}")
        return {"message": "Password reset successfully"}

    def update_user(self, user_id: int, data: UserUpdate, current_user: User) -> UserResponse:
        is_admin = current_user.role == "admin"
        if not is_admin and current_user.user_id != user_id:
            raise HTTPException(status_code=403, detail="You can only update your own account")

        user = self.get_user(user_id)

        if data.status is not None and not is_admin:
            raise HTTPException(status_code=403, detail="Only admins can change account status")

        if data.email is not None and data.email != user.email:
            if self.repo.email_taken(self.db, data.email, user.user_id):
                raise HTTPException(status_code=400, detail="Email already exists")
            user.email = data.email

        if data.name is not None:
            user.name = data.name.strip()
        if data.status is not None:
            user.status = data.status

        profile = user.tutor_profile or user.student_profile
        if data.year_level is not None:
            if profile is None:
                raise HTTPException(status_code=400, detail="Year level only applies to tutors and tutees")
            profile.year_level = data.year_level

        if data.university_id is not None:
            university = self.repo.get_university(self.db, data.university_id)
            if not university:
                raise HTTPException(status_code=400, detail="Invalid university ID")
            target = profile or user.admin_profile
            if target is None:
                raise HTTPException(status_code=400, detail="This account has no profile to update")
            target.university_id = university.university_id

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ User {user_id} updated by {current_user.user_id}")
        return build_user_response(user)

    def delete_user(self, user_id: int, current_user: User) -> dict:
        user = self.get_user(user_id)
        if user.user_id == current_user.user_id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        profile_image = user.profile_image_url
        try:
            for profile in (user.admin_profile, user.tutor_profile, user.student_profile):
                if profile is not None:
                    self.db.delete(profile)
            self.repo.delete_owned_rows(self.db, user.user_id)
            self.db.flush()
            self.db.delete(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Delete of user {user_id} blocked by related rows: {e.orig}")
            raise HTTPException(status_code=400, detail=DELETE_BLOCKED_MESSAGE) from e

        delete_stored_file(profile_image)
        logger.info(f"🗑️ User {user_id} deleted")
        return {"message": "User deleted successfully"}

    # ------------------------------------------------------------------
    # Admin profile and payment QR
    # ------------------------------------------------------------------

    def admin_profile(self, user_id: int) -> AdminProfileResponse:
        user = self.get_user(user_id)
        admin = user.admin_profile
        if admin is None:
            raise HTTPException(status_code=404, detail="Admin profile not found")
        return AdminProfileResponse(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            profile_image_url=user.profile_image_url,
            created_at=user.created_at,
            university_id=admin.university_id,
            university_name=admin.university.name if admin.university else None,
            qr_code_url=admin.qr_code_url,
        )

    async def upload_admin_qr(self, user_id: int, file: UploadFile) -> dict:
        user = self.get_user(user_id)
        if user.admin_profile is None:
            raise HTTPException(status_code=404, detail="Admin profile not found")

        path = await save_upload(file, ADMIN_QR_DIR, f"adminQR_{user_id}", replace_existing=True)
        user.admin_profile.qr_code_url = path
        self.db.commit()
        logger.info(f"✅ Admin QR updated for user {user_id}")
        return {"message": "QR code uploaded successfully", "qr_code_url": path}

    def admins_with_qr(self) -> list[AdminQrResponse]:
        return [
            AdminQrResponse(user_id=a.user_id, name=a.user.name, qr_code_url=a.qr_code_url)
            for a in self.repo.admins_with_qr(self.db)
        ]

    async def upload_profile_image(self, user_id: int, file: UploadFile, current_user: User) -> dict:
        if current_user.role != "admin" and current_user.user_id != user_id:
            raise HTTPException(status_code=403, detail="You can only change your own profile image")
        user = self.get_user(user_id)

        path = await save_upload(file, PROFILE_IMAGES_DIR, f"userProfile_{user_id}", replace_existing=True)
        user.profile_image_url = path
        self.db.commit()
        logger.info(f"✅ Profile image updated for user {user_id}")
        return {"message": "Profile image uploaded successfully", "profile_image_url": path}

    # ------------------------------------------------------------------
    # Bookings and sessions as seen by the signed-in user
    # ------------------------------------------------------------------

    def tutee_bookings(self, user: User) -> list[TuteeBookingResponse]:
        results = []
        for booking in self.repo.bookings_for_student(self.db, user.user_id):
            payment = self.repo.latest_payment(booking)
            results.append(
                TuteeBookingResponse(
                    id=booking.id,
                    tutor_id=booking.tutor_id,
                    tutor_name=booking.tutor.user.name if booking.tutor else None,
                    subject=booking.subject,
                    date=booking.date,
                    time=booking.time,
                    duration=booking.duration,
                    status=booking.status,
                    payment_proof=booking.payment_proof,
                    student_notes=booking.student_notes,
                    amount=payment.amount if payment else None,
                    payment_status=payment.status if payment else None,
                    created_at=booking.created_at,
                )
            )
        return results

    def upcoming_sessions(self, user: User, days: int = UPCOMING_LIST_DAYS) -> list[UpcomingSessionResponse]:
        today = date.today()
        horizon = today + timedelta(days=days)
        role = user.role
        if role == "tutor":
            bookings = self.repo.upcoming_bookings(
                self.db, today, horizon, tutor_id=user.tutor_profile.tutor_id
            )
        elif role == "student":
            bookings = self.repo.upcoming_bookings(self.db, today, horizon, student_id=user.user_id)
        else:
            bookings = self.repo.upcoming_bookings(self.db, today, horizon)

        return [
            UpcomingSessionResponse(
                id=b.id,
                subject=b.subject,
                date=b.date,
                time=b.time,
                duration=b.duration,
                status=b.status,
                tutor_name=b.tutor.user.name if b.tutor else None,
                student_name=b.student.name if b.student else None,
            )
            for b in bookings
        ]

    def has_upcoming(self, user: User) -> bool:
        return bool(self.upcoming_sessions(user, days=UPCOMING_NOTICE_DAYS))
