"""University repository - Database operations for universities"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import University


class UniversityRepository:
    """Repository for university database operations"""

    @staticmethod
    def list_universities(db: Session) -> list[University]:
        return db.query(University).order_by(University.name).all()

    @staticmethod
    def get_university(db: Session, university_id: int) -> Optional[University]:
        return db.query(University).filter(University.university_id == university_id).first()

    @staticmethod
    def name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(University.university_id).filter(func.lower(University.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(University.university_id != exclude_id)
        return query.first() is not None
