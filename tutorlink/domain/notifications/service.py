"""Notification service - in-app notification feed for tutors, tutees and admins"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Admin, Notification, User
from .repository import NotificationRepository
from .schemas import NotificationMetadata, NotificationResponse

logger = logging.getLogger(__name__)

PAYMENT_KEYWORDS = ("payment", "pay", "amount", "₱")
BOOKING_KEYWORDS = ("booking", "approved", "accepted", "declined")


def audience_for(user: User) -> str:
    """Notification audience of a user: tutor, tutee or admin"""
    role = user.role
    if role == "student":
        return "tutee"
    return role


def classify_notification(message: str, session_date: Optional[datetime]) -> str:
    """Priority: payment > booking_update > upcoming_session > system"""
    text = (message or "").lower()
    if any(keyword in text for keyword in PAYMENT_KEYWORDS):
        return "payment"
    if any(keyword in text for keyword in BOOKING_KEYWORDS):
        return "booking_update"
    if session_date:
        return "upcoming_session"
    return "system"


def is_visible(audience: str, message: str) -> bool:
    """
    Tutors only see booking requests and admin payment approvals in their feed.
    Tutees never see upcoming-session notices (those surface through the sessions list).
    """
    text = (message or "").lower()
    if audience == "tutor":
        return (
            "requested a booking" in text
            or "booking request" in text
            or ("payment" in text and "approved by admin" in text)
        )
    if audience == "tutee":
        return "upcoming" not in text
    return True


def notify(
    db: Session,
    receiver: User,
    message: str,
    subject_name: Optional[str] = None,
    session_date: Optional[datetime] = None,
    booking_id: Optional[int] = None,
    user_type: Optional[str] = None,
) -> Notification:
    """Queue a notification in the caller's transaction; the caller commits"""
    notification = Notification(
        receiver_id=receiver.user_id,
        user_type=user_type or audience_for(receiver),
        message=message,
        subject_name=subject_name,
        session_date=session_date,
        booking_id=booking_id,
        read=False,
    )
    db.add(notification)
    return notification


def notify_admins(db: Session, message: str, **kwargs) -> int:
    """Queue the same notification for every admin account"""
    admins = db.query(Admin).all()
    for admin in admins:
        notify(db, admin.user, message, user_type="admin", **kwargs)
    return len(admins)


class NotificationService:
    """Service layer for a user's notification feed"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def list_notifications(self, user: User) -> list[NotificationResponse]:
        audience = audience_for(user)
        rows = self.repo.list_for_receiver(self.db, user.user_id, audience)
        visible = [n for n in rows if is_visible(audience, n.message)]
        logger.info(f"🔔 {len(visible)}/{len(rows)} notifications visible for user {user.user_id} ({audience})")
        return [self._to_response(n) for n in visible]

    def unread_count(self, user: User) -> int:
        """Unread notifications the user would actually see in the feed"""
        audience = audience_for(user)
        rows = self.repo.list_unread(self.db, user.user_id, audience)
        return sum(1 for n in rows if is_visible(audience, n.message))

    def mark_read(self, notification_id: int, user: User) -> None:
        notification = self._get_owned(notification_id, user)
        notification.read = True
        self.db.commit()

    def mark_all_read(self, user: User) -> int:
        return self.repo.mark_all_read(self.db, user.user_id, audience_for(user))

    def delete(self, notification_id: int, user: User) -> None:
        notification = self._get_owned(notification_id, user)
        self.db.delete(notification)
        self.db.commit()

    def _get_owned(self, notification_id: int, user: User) -> Notification:
        notification = self.repo.get_owned(self.db, notification_id, user.user_id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    @staticmethod
    def _to_response(n: Notification) -> NotificationResponse:
        booking = n.booking
        return NotificationResponse(
            notification_id=n.notification_id,
            user_id=n.receiver_id,
            booking_id=n.booking_id,
            title=n.subject_name or "Notification",
            message=n.message,
            type=classify_notification(n.message, n.session_date),
            is_read=n.read,
            created_at=n.timestamp,
            scheduled_for=n.session_date,
            metadata=NotificationMetadata(
                session_date=n.session_date,
                subject=n.subject_name,
                tutor_name=booking.tutor.user.name if booking and booking.tutor else None,
                student_name=booking.student.name if booking and booking.student else None,
            ),
        )
