"""Tutor repository - Database operations for tutors, availability and bookings"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    AvailabilityChangeRequest,
    BookingRequest,
    Payment,
    Subject,
    Tutor,
    TutorAvailability,
    TutorSubject,
)
from ...models import Session as TutoringSession

# Statuses that hold a tutor's time slot
ACTIVE_BOOKING_STATUSES = ("pending", "awaiting_payment", "upcoming")
SESSION_VIEW_STATUSES = ("upcoming", "completed", "cancelled")


class TutorRepository:
    """Repository for tutor database operations"""

    # ------------------------------------------------------------------
    # Tutors
    # ------------------------------------------------------------------

    @staticmethod
    def get_tutor(db: Session, tutor_id: int) -> Optional[Tutor]:
        return (
            db.query(Tutor)
            .options(
                joinedload(Tutor.user),
                joinedload(Tutor.university),
                joinedload(Tutor.course),
            )
            .filter(Tutor.tutor_id == tutor_id)
            .first()
        )

    @staticmethod
    def get_tutor_for_update(db: Session, tutor_id: int) -> Optional[Tutor]:
        """Lock the tutor row so concurrent bookings for the same tutor serialize"""
        return db.query(Tutor).filter(Tutor.tutor_id == tutor_id).with_for_update().first()

    @staticmethod
    def get_tutor_by_user(db: Session, user_id: int) -> Optional[Tutor]:
        return db.query(Tutor).options(joinedload(Tutor.user)).filter(Tutor.user_id == user_id).first()

    @staticmethod
    def pending_applications(db: Session) -> list[Tutor]:
        return (
            db.query(Tutor)
            .options(
                joinedload(Tutor.user),
                joinedload(Tutor.university),
                joinedload(Tutor.course),
                joinedload(Tutor.documents),
                joinedload(Tutor.subjects).joinedload(TutorSubject.subject),
            )
            .filter(Tutor.status == "pending")
            .order_by(Tutor.tutor_id)
            .all()
        )

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    @staticmethod
    def find_subject_by_name(db: Session, name: str, course_id: Optional[int]) -> Optional[Subject]:
        """Prefer the subject under the tutor's own course, then any subject of that name"""
        query = db.query(Subject).filter(func.lower(Subject.subject_name) == name.lower())
        if course_id is not None:
            own = query.filter(Subject.course_id == course_id).first()
            if own:
                return own
        return query.order_by(Subject.subject_id).first()

    @staticmethod
    def get_tutor_subject(db: Session, tutor_id: int, subject_id: int) -> Optional[TutorSubject]:
        return (
            db.query(TutorSubject)
            .filter(TutorSubject.tutor_id == tutor_id, TutorSubject.subject_id == subject_id)
            .first()
        )

    @staticmethod
    def get_tutor_subject_by_id(db: Session, tutor_subject_id: int) -> Optional[TutorSubject]:
        return (
            db.query(TutorSubject)
            .options(
                joinedload(TutorSubject.tutor).joinedload(Tutor.user),
                joinedload(TutorSubject.subject),
            )
            .filter(TutorSubject.tutor_subject_id == tutor_subject_id)
            .first()
        )

    @staticmethod
    def tutor_subjects(db: Session, tutor_id: int) -> list[TutorSubject]:
        return (
            db.query(TutorSubject)
            .options(joinedload(TutorSubject.subject), joinedload(TutorSubject.documents))
            .filter(TutorSubject.tutor_id == tutor_id)
            .order_by(TutorSubject.created_at.desc(), TutorSubject.tutor_subject_id.desc())
            .all()
        )

    @staticmethod
    def pending_subject_applications(db: Session) -> list[TutorSubject]:
        return (
            db.query(TutorSubject)
            .options(
                joinedload(TutorSubject.tutor).joinedload(Tutor.user),
                joinedload(TutorSubject.subject),
                joinedload(TutorSubject.documents),
            )
            .filter(TutorSubject.status == "pending")
            .order_by(TutorSubject.created_at, TutorSubject.tutor_subject_id)
            .all()
        )

    @staticmethod
    def approved_subject_names(db: Session, tutor_id: int) -> list[str]:
        rows = (
            db.query(Subject.subject_name)
            .join(TutorSubject, TutorSubject.subject_id == Subject.subject_id)
            .filter(TutorSubject.tutor_id == tutor_id, TutorSubject.status == "approved")
            .order_by(Subject.subject_name)
            .all()
        )
        return [name for (name,) in rows]

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    @staticmethod
    def availability(db: Session, tutor_id: int, day_of_week: Optional[str] = None) -> list[TutorAvailability]:
        query = db.query(TutorAvailability).filter(TutorAvailability.tutor_id == tutor_id)
        if day_of_week is not None:
            query = query.filter(TutorAvailability.day_of_week == day_of_week)
        return query.all()

    @staticmethod
    def clear_availability(db: Session, tutor_id: int, day_of_week: Optional[str] = None) -> int:
        query = db.query(TutorAvailability).filter(TutorAvailability.tutor_id == tutor_id)
        if day_of_week is not None:
            query = query.filter(TutorAvailability.day_of_week == day_of_week)
        return query.delete(synchronize_session=False)

    @staticmethod
    def change_requests(db: Session, tutor_id: Optional[int] = None, status: Optional[str] = None):
        query = db.query(AvailabilityChangeRequest).options(
            joinedload(AvailabilityChangeRequest.tutor).joinedload(Tutor.user)
        )
        if tutor_id is not None:
            query = query.filter(AvailabilityChangeRequest.tutor_id == tutor_id)
        if status is not None:
            query = query.filter(AvailabilityChangeRequest.status == status)
        return query.order_by(
            AvailabilityChangeRequest.created_at.desc(), AvailabilityChangeRequest.request_id.desc()
        ).all()

    @staticmethod
    def get_change_request(db: Session, request_id: int) -> Optional[AvailabilityChangeRequest]:
        return (
            db.query(AvailabilityChangeRequest)
            .filter(AvailabilityChangeRequest.request_id == request_id)
            .first()
        )

    # ------------------------------------------------------------------
    # Bookings, sessions, payments
    # ------------------------------------------------------------------

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[BookingRequest]:
        return (
            db.query(BookingRequest)
            .options(
                joinedload(BookingRequest.tutor).joinedload(Tutor.user),
                joinedload(BookingRequest.student),
                joinedload(BookingRequest.payments),
            )
            .filter(BookingRequest.id == booking_id)
            .first()
        )

    @staticmethod
    def active_bookings_on(db: Session, tutor_id: int, on_date: date) -> list[BookingRequest]:
        return (
            db.query(BookingRequest)
            .filter(
                BookingRequest.tutor_id == tutor_id,
                BookingRequest.date == on_date,
                BookingRequest.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .all()
        )

    @staticmethod
    def bookings_for_tutor(db: Session, tutor_id: int, statuses: Optional[tuple] = None) -> list[BookingRequest]:
        query = (
            db.query(BookingRequest)
            .options(joinedload(BookingRequest.student), joinedload(BookingRequest.payments))
            .filter(BookingRequest.tutor_id == tutor_id)
        )
        if statuses:
            query = query.filter(BookingRequest.status.in_(statuses))
        return query.order_by(BookingRequest.date.desc(), BookingRequest.time.desc()).all()

    @staticmethod
    def session_for_booking(db: Session, booking_id: int) -> Optional[TutoringSession]:
        return db.query(TutoringSession).filter(TutoringSession.booking_request_id == booking_id).first()

    @staticmethod
    def payments_for_tutor(db: Session, tutor_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.student), joinedload(Payment.booking_request))
            .filter(Payment.tutor_id == tutor_id)
            .order_by(Payment.created_at.desc(), Payment.payment_id.desc())
            .all()
        )

    @staticmethod
    def sum_payments(db: Session, tutor_id: int, statuses: tuple) -> Decimal:
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.tutor_id == tutor_id, Payment.status.in_(statuses))
            .scalar()
        )
        return Decimal(str(total))

    @staticmethod
    def completed_totals(db: Session, tutor_id: int) -> tuple[int, Decimal]:
        count, hours = (
            db.query(func.count(BookingRequest.id), func.coalesce(func.sum(BookingRequest.duration), 0))
            .filter(BookingRequest.tutor_id == tutor_id, BookingRequest.status == "completed")
            .one()
        )
        return count, Decimal(str(hours))
