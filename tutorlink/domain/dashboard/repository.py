"""Dashboard repository - aggregate queries for admin statistics"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Admin, Payment, Student, Subject, Tutor, University, User
from ...models import Session as TutoringSession


class DashboardRepository:
    """Read-only aggregate queries"""

    @staticmethod
    def count_users(db: Session) -> int:
        return db.query(User).filter(User.password.isnot(None)).count()

    @staticmethod
    def count_tutors(db: Session, status: str) -> int:
        return db.query(Tutor).filter(Tutor.status == status).count()

    @staticmethod
    def count_completed_sessions(db: Session) -> int:
        return db.query(TutoringSession).filter(TutoringSession.status == "completed").count()

    @staticmethod
    def payments_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Payment.status, func.count(Payment.payment_id)).group_by(Payment.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def confirmed_payments(db: Session) -> list[tuple]:
        """(amount, created_at) of every confirmed payment"""
        return db.query(Payment.amount, Payment.created_at).filter(Payment.status == "confirmed").all()

    @staticmethod
    def top_subjects(db: Session, limit: int = 5) -> list[tuple]:
        """(subject_id, subject_name, completed session count), most booked first"""
        sessions = func.count(TutoringSession.session_id)
        return (
            db.query(Subject.subject_id, Subject.subject_name, sessions)
            .join(TutoringSession, TutoringSession.subject_id == Subject.subject_id)
            .filter(TutoringSession.status == "completed")
            .group_by(Subject.subject_id, Subject.subject_name)
            .order_by(sessions.desc(), Subject.subject_name)
            .limit(limit)
            .all()
        )

    @staticmethod
    def users_per_university(db: Session) -> dict:
        """university_id -> number of profiles (students, tutors and admins) attached to it"""
        totals: dict = {}
        for model in (Student, Tutor, Admin):
            rows = db.query(model.university_id, func.count()).group_by(model.university_id).all()
            for university_id, count in rows:
                totals[university_id] = totals.get(university_id, 0) + count
        return totals

    @staticmethod
    def university_names(db: Session) -> dict[int, str]:
        return dict(db.query(University.university_id, University.name).all())

    @staticmethod
    def user_type_counts(db: Session) -> dict[str, int]:
        rows = (
            db.query(User.user_type, func.count(User.user_id))
            .filter(User.password.isnot(None))
            .group_by(User.user_type)
            .all()
        )
        return {user_type: count for user_type, count in rows}
