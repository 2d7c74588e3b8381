"""User domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import User
from ...shared.validators import validate_email


class UserResponse(BaseModel):
    """User as returned to clients; never carries the password hash"""

    user_id: int
    name: Optional[str]
    email: str
    user_type: Optional[str]
    role: str
    status: str
    is_verified: bool
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    university_id: Optional[int] = None
    university_name: Optional[str] = None
    course_id: Optional[int] = None
    course_name: Optional[str] = None
    year_level: Optional[int] = None
    tutor_id: Optional[int] = None
    tutor_status: Optional[str] = None


def build_user_response(user: User) -> UserResponse:
    """Flatten whichever profile the user has into one response"""
    profile = user.tutor_profile or user.student_profile or user.admin_profile
    university = getattr(profile, "university", None)
    course = getattr(profile, "course", None)
    return UserResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        user_type=user.user_type,
        role=user.role,
        status=user.status,
        is_verified=bool(user.is_verified),
        profile_image_url=user.profile_image_url,
        created_at=user.created_at,
        university_id=university.university_id if university else None,
        university_name=university.name if university else None,
        course_id=course.course_id if course else None,
        course_name=course.course_name if course else None,
        year_level=getattr(profile, "year_level", None),
        tutor_id=user.tutor_profile.tutor_id if user.tutor_profile else None,
        tutor_status=user.tutor_profile.status if user.tutor_profile else None,
    )


class UserStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class AdminPasswordReset(BaseModel):
    newPassword: str = Field(min_length=7)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    status: Optional[Literal["active", "inactive"]] = None
    year_level: Optional[int] = Field(default=None, ge=1, le=6)
    university_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class AdminProfileResponse(BaseModel):
    user_id: int
    name: Optional[str]
    email: str
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    university_id: Optional[int] = None
    university_name: Optional[str] = None
    qr_code_url: Optional[str] = None


class AdminQrResponse(BaseModel):
    user_id: int
    name: Optional[str]
    qr_code_url: str


class TuteeBookingResponse(BaseModel):
    id: int
    tutor_id: int
    tutor_name: Optional[str]
    subject: str
    date: date
    time: str
    duration: Decimal
    status: str
    payment_proof: Optional[str] = None
    student_notes: Optional[str] = None
    amount: Optional[Decimal] = None
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None


class UpcomingSessionResponse(BaseModel):
    id: int
    subject: str
    date: date
    time: str
    duration: Decimal
    status: str
    tutor_name: Optional[str] = None
    student_name: Optional[str] = None
