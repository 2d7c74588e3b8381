"""User repository - Database operations for accounts and their profiles"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    Admin,
    BookingRequest,
    Notification,
    PasswordResetToken,
    Payment,
    Student,
    Tutor,
    University,
    User,
)

PROFILE_OPTIONS = (
    joinedload(User.admin_profile).joinedload(Admin.university),
    joinedload(User.tutor_profile).joinedload(Tutor.university),
    joinedload(User.tutor_profile).joinedload(Tutor.course),
    joinedload(User.student_profile).joinedload(Student.university),
    joinedload(User.student_profile).joinedload(Student.course),
)


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def list_users(db: Session) -> list[User]:
        """Every account except verification placeholders"""
        return (
            db.query(User)
            .options(*PROFILE_OPTIONS)
            .filter(User.password.isnot(None))
            .order_by(User.created_at.desc(), User.user_id.desc())
            .all()
        )

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).options(*PROFILE_OPTIONS).filter(User.user_id == user_id).first()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_user_id: int) -> bool:
        return (
            db.query(User.user_id)
            .filter(func.lower(User.email) == email.lower(), User.user_id != exclude_user_id)
            .first()
            is not None
        )

    @staticmethod
    def get_university(db: Session, university_id: int) -> Optional[University]:
        return db.query(University).filter(University.university_id == university_id).first()

    @staticmethod
    def admins_with_qr(db: Session) -> list[Admin]:
        return (
            db.query(Admin)
            .options(joinedload(Admin.user))
            .filter(Admin.qr_code_url.isnot(None))
            .order_by(Admin.admin_id)
            .all()
        )

    @staticmethod
    def delete_owned_rows(db: Session, user_id: int) -> None:
        """Rows that only exist for the user and go away with the account"""
        db.query(Notification).filter(Notification.receiver_id == user_id).delete(synchronize_session=False)
        db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user_id).delete(
            synchronize_session=False
        )

    @staticmethod
    def bookings_for_student(db: Session, student_id: int) -> list[BookingRequest]:
        return (
            db.query(BookingRequest)
            .options(
                joinedload(BookingRequest.tutor).joinedload(Tutor.user),
                joinedload(BookingRequest.payments),
            )
            .filter(BookingRequest.student_id == student_id)
            .order_by(BookingRequest.created_at.desc(), BookingRequest.id.desc())
            .all()
        )

    @staticmethod
    def upcoming_bookings(
        db: Session,
        start: date,
        end: date,
        student_id: Optional[int] = None,
        tutor_id: Optional[int] = None,
    ) -> list[BookingRequest]:
        """Bookings in the upcoming state dated within [start, end], soonest first"""
        query = (
            db.query(BookingRequest)
            .options(
                joinedload(BookingRequest.tutor).joinedload(Tutor.user),
                joinedload(BookingRequest.student),
            )
            .filter(
                BookingRequest.status == "upcoming",
                BookingRequest.date >= start,
                BookingRequest.date <= end,
            )
        )
        if student_id is not None:
            query = query.filter(BookingRequest.student_id == student_id)
        if tutor_id is not None:
            query = query.filter(BookingRequest.tutor_id == tutor_id)
        return query.order_by(BookingRequest.date, BookingRequest.time).all()

    @staticmethod
    def latest_payment(booking: BookingRequest) -> Optional[Payment]:
        if not booking.payments:
            return None
        return max(booking.payments, key=lambda p: p.payment_id)
