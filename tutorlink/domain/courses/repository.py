"""Course repository - Database operations for courses and subjects"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Course, Subject, University


class CourseRepository:
    """Repository for course and subject database operations"""

    @staticmethod
    def list_courses(db: Session, university_id: Optional[int] = None) -> list[Course]:
        query = db.query(Course).options(joinedload(Course.university))
        if university_id is not None:
            query = query.filter(Course.university_id == university_id)
        return query.order_by(Course.course_name).all()

    @staticmethod
    def get_course(db: Session, course_id: int) -> Optional[Course]:
        return (
            db.query(Course)
            .options(joinedload(Course.university))
            .filter(Course.course_id == course_id)
            .first()
        )

    @staticmethod
    def get_university(db: Session, university_id: int) -> Optional[University]:
        return db.query(University).filter(University.university_id == university_id).first()

    @staticmethod
    def course_exists(db: Session, course_name: str, university_id: int, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Course.course_id).filter(
            func.lower(Course.course_name) == course_name.lower(),
            Course.university_id == university_id,
        )
        if exclude_id is not None:
            query = query.filter(Course.course_id != exclude_id)
        return query.first() is not None

    @staticmethod
    def subjects_for_course(db: Session, course_id: int) -> list[Subject]:
        return (
            db.query(Subject)
            .filter(Subject.course_id == course_id)
            .order_by(Subject.semester, Subject.subject_name)
            .all()
        )

    @staticmethod
    def get_course_subject(db: Session, course_id: int, subject_id: int) -> Optional[Subject]:
        return (
            db.query(Subject)
            .filter(Subject.subject_id == subject_id, Subject.course_id == course_id)
            .first()
        )

    @staticmethod
    def all_subjects(db: Session) -> list[Subject]:
        return db.query(Subject).order_by(Subject.subject_name, Subject.subject_id).all()
