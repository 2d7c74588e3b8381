"""Auth router - registration, login, email verification and password reset"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ...shared.validators import validate_email
from .schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    PasswordResetRequest,
    RegisterAdminRequest,
    RegisterStudentRequest,
    RegisterTutorRequest,
    SendCodeRequest,
    VerificationStatusResponse,
    VerifyAndResetRequest,
    VerifyCodeRequest,
)
from .service import AuthService, EmailVerificationService, PasswordResetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Rate limiters
rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
rate_limit_verification = create_rate_limiter(
    limit=10,
    window_seconds=3600,  # 1 hour
    key_prefix="email_verification",
)
rate_limit_password_reset = create_rate_limiter(
    limit=10,
    window_seconds=3600,  # 1 hour
    key_prefix="password_reset",
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


def get_verification_service(db: Session = Depends(get_db)) -> EmailVerificationService:
    """Dependency injection for EmailVerificationService"""
    return EmailVerificationService(db)


def get_password_reset_service(db: Session = Depends(get_db)) -> PasswordResetService:
    """Dependency injection for PasswordResetService"""
    return PasswordResetService(db)


# ============================================================================
# REGISTRATION
# ============================================================================


@router.post("/register", response_model=AuthResponse)
async def register_admin(
    data: RegisterAdminRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create the platform's single admin account"""
    return service.register_admin(data)


@router.post("/register-student", response_model=AuthResponse)
async def register_student(
    data: RegisterStudentRequest,
    service: AuthService = Depends(get_auth_service),
):
    return service.register_student(data)


@router.post("/register-tutor", response_model=AuthResponse)
async def register_tutor(
    data: RegisterTutorRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Tutor application intake; the profile starts out pending review"""
    return service.register_tutor(data)


# ============================================================================
# LOGIN
# ============================================================================


@router.post("/login", response_model=AuthResponse)
async def login_admin(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    """Admin portal login"""
    return service.login_admin(data)


@router.post("/login-tutor-tutee", response_model=AuthResponse)
async def login_tutor_tutee(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_login),
):
    return service.login_tutor_tutee(data)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return service.change_password(current_user, data)


# ============================================================================
# EMAIL VERIFICATION
# ============================================================================


@router.post("/email-verification/send-code")
async def send_verification_code(
    data: SendCodeRequest,
    service: EmailVerificationService = Depends(get_verification_service),
    _: None = Depends(rate_limit_verification),
):
    return await service.send_code(data.email)


@router.get("/email-verification/status", response_model=VerificationStatusResponse)
async def verification_status(
    email: str = Query(...),
    service: EmailVerificationService = Depends(get_verification_service),
    _: None = Depends(rate_limit_verification),
):
    try:
        email = validate_email(email)
    except ValueError:
        return VerificationStatusResponse(is_verified=0)
    return service.status(email)


@router.post("/email-verification/verify-code")
async def verify_code(
    data: VerifyCodeRequest,
    service: EmailVerificationService = Depends(get_verification_service),
    _: None = Depends(rate_limit_verification),
):
    return service.verify_code(data.email, data.code)


# ============================================================================
# PASSWORD RESET
# ============================================================================


@router.post("/password-reset/request", response_model=MessageResponse)
async def request_password_reset(
    data: PasswordResetRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
    _: None = Depends(rate_limit_password_reset),
):
    """Email a 6-digit reset code"""
    return await service.request_reset(data.email)


@router.post("/password-reset/verify-and-reset", response_model=MessageResponse)
async def verify_and_reset(
    data: VerifyAndResetRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
    _: None = Depends(rate_limit_password_reset),
):
    return service.verify_and_reset(data.email, data.code, data.newPassword)
