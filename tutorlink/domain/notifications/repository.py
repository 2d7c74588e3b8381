"""Notification repository - Database operations for notifications"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BookingRequest, Notification, Tutor


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def list_for_receiver(db: Session, receiver_id: int, user_type: str) -> list[Notification]:
        return (
            db.query(Notification)
            .options(
                joinedload(Notification.booking).joinedload(BookingRequest.tutor).joinedload(Tutor.user),
                joinedload(Notification.booking).joinedload(BookingRequest.student),
            )
            .filter(Notification.receiver_id == receiver_id, Notification.user_type == user_type)
            .order_by(Notification.timestamp.desc(), Notification.notification_id.desc())
            .all()
        )

    @staticmethod
    def list_unread(db: Session, receiver_id: int, user_type: str) -> list[Notification]:
        return (
            db.query(Notification)
            .filter(
                Notification.receiver_id == receiver_id,
                Notification.user_type == user_type,
                Notification.read.is_(False),
            )
            .all()
        )

    @staticmethod
    def get_owned(db: Session, notification_id: int, receiver_id: int) -> Optional[Notification]:
        return (
            db.query(Notification)
            .filter(
                Notification.notification_id == notification_id,
                Notification.receiver_id == receiver_id,
            )
            .first()
        )

    @staticmethod
    def mark_all_read(db: Session, receiver_id: int, user_type: str) -> int:
        updated = (
            db.query(Notification)
            .filter(
                Notification.receiver_id == receiver_id,
                Notification.user_type == user_type,
                Notification.read.is_(False),
            )
            .update({Notification.read: True}, synchronize_session=False)
        )
        db.commit()
        return updated
