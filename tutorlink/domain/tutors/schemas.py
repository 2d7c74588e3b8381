"""Tutor domain schemas - applications, profiles, availability and bookings"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_ph_mobile

Decision = Literal["approved", "rejected"]


# ============================================================================
# APPLICATION & PROFILE
# ============================================================================


class DocumentResponse(BaseModel):
    document_id: int
    tutor_subject_id: Optional[int] = None
    file_url: str
    file_name: str
    file_type: str

    class Config:
        from_attributes = True


class TutorSubjectResponse(BaseModel):
    tutor_subject_id: int
    tutor_id: int
    subject_id: int
    subject_name: str
    status: str
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    documents: list[DocumentResponse] = []


class PendingSubjectApplicationResponse(TutorSubjectResponse):
    tutor_name: Optional[str] = None
    tutor_email: Optional[str] = None


class TutorApplicationResponse(BaseModel):
    tutor_id: int
    user_id: int
    name: Optional[str]
    email: str
    bio: Optional[str] = None
    gcash_number: Optional[str] = None
    session_rate_per_hour: Optional[Decimal] = None
    year_level: Optional[int] = None
    status: str
    admin_notes: Optional[str] = None
    university_name: Optional[str] = None
    course_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    documents: list[DocumentResponse] = []
    subjects: list[TutorSubjectResponse] = []


class TutorStatusUpdate(BaseModel):
    status: Decision
    adminNotes: Optional[str] = Field(default=None, max_length=2000)


class TutorProfileResponse(BaseModel):
    tutor_id: int
    user_id: int
    name: Optional[str]
    email: str
    bio: Optional[str] = None
    gcash_number: Optional[str] = None
    session_rate_per_hour: Optional[Decimal] = None
    profile_image_url: Optional[str] = None
    gcash_qr_url: Optional[str] = None
    subjects: list[str] = []
    status: str
    activity_status: str
    university_name: Optional[str] = None
    course_name: Optional[str] = None
    year_level: Optional[int] = None


class TutorProfileUpdate(BaseModel):
    bio: Optional[str] = Field(default=None, max_length=2000)
    gcash_number: Optional[str] = None
    session_rate_per_hour: Optional[Decimal] = Field(default=None, ge=0, le=100000)

    @field_validator("gcash_number")
    @classmethod
    def check_gcash(cls, v):
        return validate_ph_mobile(v)


class SubjectsRequest(BaseModel):
    subjects: list[str] = Field(min_length=1)


class SubjectDecision(BaseModel):
    status: Decision
    admin_notes: Optional[str] = Field(default=None, max_length=2000)


# ============================================================================
# AVAILABILITY
# ============================================================================


class AvailabilitySlot(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str


class AvailabilityUpdate(BaseModel):
    slots: list[AvailabilitySlot]


class AvailabilityResponse(BaseModel):
    availability_id: int
    tutor_id: int
    day_of_week: str
    start_time: str
    end_time: str

    class Config:
        from_attributes = True


class ChangeRequestCreate(AvailabilitySlot):
    reason: Optional[str] = Field(default=None, max_length=1000)


class ChangeRequestResponse(BaseModel):
    request_id: int
    tutor_id: int
    tutor_name: Optional[str] = None
    day_of_week: str
    start_time: str
    end_time: str
    reason: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ChangeRequestDecision(BaseModel):
    status: Decision
    admin_notes: Optional[str] = Field(default=None, max_length=2000)


# ============================================================================
# BOOKINGS, SESSIONS & EARNINGS
# ============================================================================


class BookingCreate(BaseModel):
    subject: str = Field(min_length=1, max_length=255)
    date: date
    time: str
    duration: Decimal
    student_notes: Optional[str] = Field(default=None, max_length=2000)


class PaymentSummary(BaseModel):
    payment_id: int
    amount: Decimal
    status: str
    dispute_status: str
    admin_note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: int
    tutor_id: int
    tutor_name: Optional[str] = None
    student_id: int
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    subject: str
    date: date
    time: str
    duration: Decimal
    status: str
    payment_proof: Optional[str] = None
    tutor_proof: Optional[str] = None
    student_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    payment: Optional[PaymentSummary] = None


class OpenSlotsResponse(BaseModel):
    tutor_id: int
    date: date
    day_of_week: str
    duration: Decimal
    slots: list[str]


class TutorPaymentResponse(BaseModel):
    payment_id: int
    booking_request_id: Optional[int] = None
    student_name: Optional[str] = None
    subject: Optional[str] = None
    session_date: Optional[date] = None
    amount: Decimal
    status: str
    dispute_status: str
    created_at: Optional[datetime] = None


class EarningsStatsResponse(BaseModel):
    total_earnings: Decimal
    pending_earnings: Decimal
    completed_sessions: int
    total_hours: Decimal
    average_rating: Optional[float] = None
