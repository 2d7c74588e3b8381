"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BookingRequest, Payment, Subject, Tutor, TutorSubject


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def list_payments(db: Session) -> list[Payment]:
        return (
            db.query(Payment)
            .options(
                joinedload(Payment.student),
                joinedload(Payment.tutor).joinedload(Tutor.user),
                joinedload(Payment.booking_request),
            )
            .order_by(Payment.created_at.desc(), Payment.payment_id.desc())
            .all()
        )

    @staticmethod
    def get_payment(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(
                joinedload(Payment.student),
                joinedload(Payment.tutor).joinedload(Tutor.user),
                joinedload(Payment.booking_request).joinedload(BookingRequest.student),
            )
            .filter(Payment.payment_id == payment_id)
            .first()
        )

    @staticmethod
    def latest_for_booking(db: Session, booking_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.booking_request_id == booking_id)
            .order_by(Payment.payment_id.desc())
            .first()
        )

    @staticmethod
    def tutor_subject_id(db: Session, tutor_id: int, subject_name: str) -> Optional[int]:
        """Subject row behind a booking's subject name, looked up among the tutor's subjects"""
        row = (
            db.query(Subject.subject_id)
            .join(TutorSubject, TutorSubject.subject_id == Subject.subject_id)
            .filter(TutorSubject.tutor_id == tutor_id, Subject.subject_name == subject_name)
            .first()
        )
        return row[0] if row else None
