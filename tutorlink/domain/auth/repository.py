"""Auth repository - Database operations for accounts and one-time codes"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Admin, Course, PasswordResetToken, University, User


class AuthRepository:
    """Repository for account and code database operations"""

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return (
            db.query(User)
            .options(
                joinedload(User.admin_profile),
                joinedload(User.tutor_profile),
                joinedload(User.student_profile),
            )
            .filter(func.lower(User.email) == email.lower())
            .first()
        )

    @staticmethod
    def admin_exists(db: Session) -> bool:
        return db.query(Admin.admin_id).first() is not None or (
            db.query(User.user_id).filter(User.user_type == "admin").first() is not None
        )

    @staticmethod
    def get_university(db: Session, university_id: int) -> Optional[University]:
        return db.query(University).filter(University.university_id == university_id).first()

    @staticmethod
    def get_course(db: Session, course_id: int) -> Optional[Course]:
        return db.query(Course).filter(Course.course_id == course_id).first()

    @staticmethod
    def find_or_create_course(db: Session, university: University, course_name: str) -> Course:
        """Resolve a course by name within a university, creating it when missing (not committed)"""
        name = course_name.strip()
        course = (
            db.query(Course)
            .filter(
                Course.university_id == university.university_id,
                func.lower(Course.course_name) == name.lower(),
            )
            .first()
        )
        if course:
            return course
        course = Course(course_name=name, university_id=university.university_id)
        db.add(course)
        db.flush()
        return course

    @staticmethod
    def invalidate_reset_tokens(db: Session, user_id: int) -> int:
        return (
            db.query(PasswordResetToken)
            .filter(PasswordResetToken.user_id == user_id, PasswordResetToken.is_used.is_(False))
            .update({PasswordResetToken.is_used: True}, synchronize_session=False)
        )

    @staticmethod
    def create_reset_token(db: Session, user_id: int, code: str, expiry: datetime) -> PasswordResetToken:
        token = PasswordResetToken(user_id=user_id, changepasscode=code, expiry_date=expiry, is_used=False)
        db.add(token)
        return token

    @staticmethod
    def latest_unused_reset_token(db: Session, user_id: int) -> Optional[PasswordResetToken]:
        """Requesting a new code invalidates older ones, so at most one is live"""
        return (
            db.query(PasswordResetToken)
            .filter(PasswordResetToken.user_id == user_id, PasswordResetToken.is_used.is_(False))
            .order_by(PasswordResetToken.id.desc())
            .first()
        )
