"""Auth service - registration, login, email verification and password reset"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import config
from ...auth import issue_access_token
from ...email_service import (
    EmailDeliveryError,
    send_password_reset_code_email,
    send_verification_code_email,
)
from ...models import Admin, Course, Student, Tutor, University, User
from ...security_utils import (
    constant_time_compare,
    generate_numeric_code,
    hash_password,
    sanitize_text,
    verify_password,
)
from ...shared.validators import email_matches_domain
from ...storage import PROFILE_IMAGES_DIR
from ..users.schemas import build_user_response
from .repository import AuthRepository
from .schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RegisterAdminRequest,
    RegisterStudentRequest,
    RegisterTutorRequest,
    VerificationStatusResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PROFILE_IMAGE = f"{PROFILE_IMAGES_DIR}/userProfile_admin.png"


def is_placeholder(user: User) -> bool:
    """Accounts created by the email verification step before registration completes"""
    return (
        user.password is None
        and user.admin_profile is None
        and user.tutor_profile is None
        and user.student_profile is None
    )


class AuthService:
    """Service layer for account registration and login"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _claim_email(self, email: str) -> Optional[User]:
        """Return a placeholder account to complete, None for a fresh email, or raise"""
        existing = self.repo.get_user_by_email(self.db, email)
        if existing is None:
            return None
        if is_placeholder(existing):
            logger.info(f"🔄 Completing placeholder account {existing.user_id} for {email}")
            return existing
        raise HTTPException(status_code=400, detail="Email already exists")

    def _resolve_university(self, university_id: int) -> University:
        university = self.repo.get_university(self.db, university_id)
        if not university:
            raise HTTPException(status_code=400, detail="Invalid university ID")
        if university.status != "active":
            raise HTTPException(status_code=400, detail="This university is not accepting registrations")
        return university

    def _resolve_course(
        self, university: University, course_id: Optional[int], course_name: Optional[str]
    ) -> Course:
        if course_id:
            course = self.repo.get_course(self.db, course_id)
            if not course or course.university_id != university.university_id:
                raise HTTPException(status_code=400, detail="Invalid course ID for this university")
            return course
        return self.repo.find_or_create_course(self.db, university, course_name)

    def _upsert_user(
        self, placeholder: Optional[User], name: str, email: str, password: str, user_type: str
    ) -> User:
        user = placeholder or User(email=email, is_verified=False)
        user.name = name.strip()
        user.password = hash_password(password)
        user.user_type = user_type
        user.status = "active"
        user.verification_code = None
        user.verification_expires = None
        if placeholder is None:
            self.db.add(user)
        self.db.flush()
        return user

    def register_admin(self, data: RegisterAdminRequest) -> AuthResponse:
        placeholder = self._claim_email(data.email)

        if self.repo.admin_exists(self.db):
            logger.warning(f"⚠️ Second admin registration attempted by {data.email}")
            raise HTTPException(
                status_code=400, detail="An admin account already exists. Please log in instead."
            )

        university = None
        if data.university_id:
            university = self.repo.get_university(self.db, data.university_id)
            if not university:
                raise HTTPException(status_code=400, detail="Invalid university ID")

        user = self._upsert_user(placeholder, data.name, data.email, data.password, "admin")
        user.profile_image_url = DEFAULT_ADMIN_PROFILE_IMAGE
        self.db.add(
            Admin(
                user_id=user.user_id,
                university_id=university.university_id if university else None,
            )
        )
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ Admin account created: {user.email}")
        return AuthResponse(user=build_user_response(user), accessToken=issue_access_token(user, "admin"))

    def register_student(self, data: RegisterStudentRequest) -> AuthResponse:
        placeholder = self._claim_email(data.email)
        university = self._resolve_university(data.university_id)
        if not email_matches_domain(data.email, university.email_domain):
            raise HTTPException(status_code=400, detail=f"Email domain must be {university.email_domain}")
        course = self._resolve_course(university, data.course_id, data.course_name)

        user = self._upsert_user(placeholder, data.name, data.email, data.password, "tutee")
        self.db.add(
            Student(
                user_id=user.user_id,
                university_id=university.university_id,
                course_id=course.course_id,
                year_level=data.year_level,
            )
        )
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ Student registered: {user.email} (course {course.course_name})")
        return AuthResponse(user=build_user_response(user), accessToken=issue_access_token(user, "student"))

    def register_tutor(self, data: RegisterTutorRequest) -> AuthResponse:
        placeholder = self._claim_email(data.email)
        university = self._resolve_university(data.university_id)
        if not email_matches_domain(data.email, university.email_domain):
            raise HTTPException(status_code=400, detail=f"Email domain must be {university.email_domain}")
        course = self._resolve_course(university, data.course_id, data.course_name)

        user = self._upsert_user(placeholder, data.name, data.email, data.password, "tutor")
        tutor = Tutor(
            user_id=user.user_id,
            bio=sanitize_text(data.bio),
            gcash_number=data.gcash_number,
            session_rate_per_hour=data.session_rate_per_hour,
            university_id=university.university_id,
            course_id=course.course_id,
            year_level=data.year_level,
            status="pending",
        )
        self.db.add(tutor)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"✅ Tutor application received: {user.email} (tutor_id {tutor.tutor_id})")
        return AuthResponse(
            user=build_user_response(user),
            accessToken=issue_access_token(user, "tutor"),
            tutor_id=tutor.tutor_id,
        )

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def _authenticate(self, data: LoginRequest) -> User:
        user = self.repo.get_user_by_email(self.db, data.email)
        is_valid, needs_rehash = verify_password(data.password, user.password if user else None)
        if not user or not is_valid:
            logger.warning(f"⚠️ Failed login for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if needs_rehash:
            user.password = hash_password(data.password)
            self.db.commit()
            logger.info(f"🔄 Password hash upgraded for user {user.user_id}")

        if user.status == "inactive":
            raise HTTPException(
                status_code=401, detail="Your account is inactive. Please contact an administrator."
            )
        return user

    def login_admin(self, data: LoginRequest) -> AuthResponse:
        user = self._authenticate(data)
        if user.role != "admin":
            raise HTTPException(status_code=401, detail="Access denied. Only admins can log in.")
        logger.info(f"✅ Admin logged in: {user.email}")
        return AuthResponse(user=build_user_response(user), accessToken=issue_access_token(user, "admin"))

    def login_tutor_tutee(self, data: LoginRequest) -> AuthResponse:
        user = self._authenticate(data)
        if user.role == "admin":
            raise HTTPException(
                status_code=401,
                detail="Admin accounts are not allowed here. Please use the Admin Portal.",
            )
        role = user.role
        logger.info(f"✅ {role.title()} logged in: {user.email}")
        return AuthResponse(
            user=build_user_response(user),
            accessToken=issue_access_token(user, role),
            tutor_id=user.tutor_profile.tutor_id if user.tutor_profile else None,
        )

    def change_password(self, user: User, data: ChangePasswordRequest) -> dict:
        is_valid, _ = verify_password(data.current_password, user.password)
        if not is_valid:
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        user.password = hash_password(data.new_password)
        self.db.commit()
        logger.info(f"🔐 Password changed for user {user.user_id}")
        return {"message": "Password updated successfully"}


class EmailVerificationService:
    """Issues and checks the 6-digit email verification code"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    async def send_code(self, email: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if user and user.is_verified:
            logger.info(f"⚠️ {email} is already verified, not sending a new code")
            return {"message": "Email is already verified"}

        code = generate_numeric_code(6)
        expires = datetime.utcnow() + timedelta(minutes=config.VERIFICATION_CODE_TTL_MINUTES)

        if user is None:
            user = User(email=email, is_verified=False, status="pending_verification")
            self.db.add(user)
            logger.info(f"🆕 Created placeholder account for {email}")

        user.verification_code = code
        user.verification_expires = expires
        self.db.commit()

        try:
            await send_verification_code_email(to=email, user_name=user.name or "User", code=code)
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to send verification code to {email}: {e}")
            raise HTTPException(
                status_code=400, detail="Failed to send verification code. Please try again later."
            ) from e

        logger.info(f"📧 Verification code sent to {email}")
        return {"message": "Verification code sent to your email"}

    def status(self, email: str) -> VerificationStatusResponse:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            return VerificationStatusResponse(is_verified=0)
        return VerificationStatusResponse(is_verified=1 if user.is_verified else 0, user_id=user.user_id)

    def verify_code(self, email: str, code: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if user.is_verified:
            return {"message": "Email is already verified", "user_id": user.user_id}

        if not user.verification_code or not user.verification_expires:
            raise HTTPException(
                status_code=400, detail="No verification code found. Please request a new one."
            )

        if datetime.utcnow() > user.verification_expires:
            raise HTTPException(
                status_code=400, detail="Verification code has expired. Please request a new one."
            )

        if not constant_time_compare(user.verification_code, code.strip()):
            raise HTTPException(status_code=400, detail="Invalid verification code")

        user.is_verified = True
        user.status = "active"
        user.verification_code = None
        user.verification_expires = None
        self.db.commit()

        logger.info(f"✅ Email verified for user {user.user_id}")
        return {"message": "Email verified successfully", "user_id": user.user_id}


class PasswordResetService:
    """Issues and redeems the 6-digit password reset code"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    async def request_reset(self, email: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if not user or user.password is None:
            raise HTTPException(status_code=404, detail="User not found with this email address")

        code = generate_numeric_code(6)
        expiry = datetime.utcnow() + timedelta(minutes=config.RESET_CODE_TTL_MINUTES)

        invalidated = self.repo.invalidate_reset_tokens(self.db, user.user_id)
        self.repo.create_reset_token(self.db, user.user_id, code, expiry)
        self.db.commit()
        logger.info(f"🔐 Reset code issued for user {user.user_id} ({invalidated} older code(s) invalidated)")

        try:
            await send_password_reset_code_email(to=user.email, user_name=user.name or "User", code=code)
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to send password reset email to {user.email}: {e}")
            raise HTTPException(
                status_code=400,
                detail="Failed to send verification code. Please check your email configuration and try again.",
            ) from e

        return {
            "message": "Verification code sent to your email address. Please check your inbox and spam folder."
        }

    def verify_and_reset(self, email: str, code: str, new_password: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found with this email address")

        token = self.repo.latest_unused_reset_token(self.db, user.user_id)
        if not token or not constant_time_compare(token.changepasscode, code.strip()):
            raise HTTPException(status_code=400, detail="Invalid or expired verification code")

        if datetime.utcnow() > token.expiry_date:
            raise HTTPException(
                status_code=400, detail="Verification code has expired. Please request a new one."
            )

        user.password = hash_password(new_password)
        token.is_used = True
        self.db.commit()

        logger.info(f"✅ Password reset completed for user {user.user_id}")
        return {
            "message": "Password has been successfully reset. You can now log in with your new password."
        }
