"""Notification domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NotificationMetadata(BaseModel):
    session_date: Optional[datetime] = None
    subject: Optional[str] = None
    tutor_name: Optional[str] = None
    student_name: Optional[str] = None


class NotificationResponse(BaseModel):
    notification_id: int
    user_id: int
    booking_id: Optional[int] = None
    title: str
    message: str
    type: str  # upcoming_session, booking_update, payment, system
    is_read: bool
    created_at: Optional[datetime] = None
    scheduled_for: Optional[datetime] = None
    metadata: NotificationMetadata
