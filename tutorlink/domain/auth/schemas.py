"""Auth domain schemas - registration, login, verification and reset payloads"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_ph_mobile
from ..users.schemas import UserResponse


class _EmailPayload(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class RegisterAdminRequest(_EmailPayload):
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, description="Password must be at least 8 characters long")
    university_id: Optional[int] = None


class _AcademicRegistration(_EmailPayload):
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)
    university_id: int
    course_id: Optional[int] = None
    course_name: Optional[str] = Field(default=None, max_length=255)
    year_level: int = Field(ge=1, le=6)

    @model_validator(mode="after")
    def require_course(self):
        if not self.course_id and not (self.course_name and self.course_name.strip()):
            raise ValueError("Either course_id or course_name is required")
        return self


class RegisterStudentRequest(_AcademicRegistration):
    pass


class RegisterTutorRequest(_AcademicRegistration):
    bio: Optional[str] = Field(default=None, max_length=2000)
    gcash_number: Optional[str] = None
    session_rate_per_hour: Optional[Decimal] = Field(default=None, ge=0, le=100000)

    @field_validator("gcash_number")
    @classmethod
    def check_gcash(cls, v):
        return validate_ph_mobile(v)


class LoginRequest(_EmailPayload):
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class AuthResponse(BaseModel):
    user: UserResponse
    accessToken: str
    tutor_id: Optional[int] = None


class SendCodeRequest(_EmailPayload):
    pass


class VerifyCodeRequest(_EmailPayload):
    code: str = Field(min_length=6, max_length=6)


class VerificationStatusResponse(BaseModel):
    is_verified: int
    user_id: Optional[int] = None


class PasswordResetRequest(_EmailPayload):
    pass


class VerifyAndResetRequest(_EmailPayload):
    code: str = Field(min_length=1)
    newPassword: str = Field(min_length=7, description="New password must be at least 7 characters long")


class MessageResponse(BaseModel):
    message: str
