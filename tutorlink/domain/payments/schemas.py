"""Payment domain schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PaymentResponse(BaseModel):
    payment_id: int
    booking_request_id: Optional[int] = None
    student_id: int
    student_name: Optional[str] = None
    tutor_id: int
    tutor_name: Optional[str] = None
    subject: Optional[str] = None
    session_date: Optional[date] = None
    session_time: Optional[str] = None
    amount: Decimal
    status: str
    dispute_status: str
    dispute_proof_url: Optional[str] = None
    payment_proof: Optional[str] = None
    admin_note: Optional[str] = None
    created_at: Optional[datetime] = None


class DisputeUpdate(BaseModel):
    dispute_status: Literal["none", "open", "under_review", "resolved", "rejected"]
    admin_note: Optional[str] = Field(default=None, max_length=2000)


class PaymentRejectRequest(BaseModel):
    admin_note: Optional[str] = Field(default=None, max_length=2000)
