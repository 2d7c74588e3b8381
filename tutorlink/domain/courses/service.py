"""Course service - course catalogue and per-course subjects"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Course, Subject
from .repository import CourseRepository
from .schemas import CourseCreate, CourseResponse, CourseUpdate, SubjectCreate, SubjectUpdate

logger = logging.getLogger(__name__)


def course_response(course: Course) -> CourseResponse:
    university = course.university
    return CourseResponse(
        course_id=course.course_id,
        course_name=course.course_name,
        university_id=course.university_id,
        university_name=university.name if university else None,
        university_acronym=university.acronym if university else None,
    )


class CourseService:
    """Service layer for courses and subjects"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CourseRepository()

    def get_course(self, course_id: int) -> Course:
        course = self.repo.get_course(self.db, course_id)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")
        return course

    def _require_university(self, university_id: int) -> None:
        if not self.repo.get_university(self.db, university_id):
            raise HTTPException(status_code=404, detail="University not found")

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    def list_courses(self, university_id: Optional[int] = None) -> list[CourseResponse]:
        return [course_response(c) for c in self.repo.list_courses(self.db, university_id)]

    def create_course(self, data: CourseCreate) -> CourseResponse:
        self._require_university(data.university_id)
        name = data.course_name.strip()
        if self.repo.course_exists(self.db, name, data.university_id):
            raise HTTPException(status_code=400, detail="Course already exists for this university")

        course = Course(course_name=name, university_id=data.university_id)
        self.db.add(course)
        self.db.commit()
        logger.info(f"✅ Course created: {name} (university {data.university_id})")
        return course_response(self.get_course(course.course_id))

    def update_course(self, course_id: int, data: CourseUpdate) -> CourseResponse:
        course = self.get_course(course_id)
        if data.university_id is not None:
            self._require_university(data.university_id)
            course.university_id = data.university_id
        if data.course_name is not None:
            course.course_name = data.course_name.strip()

        if self.repo.course_exists(self.db, course.course_name, course.university_id, exclude_id=course_id):
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Course already exists for this university")

        self.db.commit()
        logger.info(f"🔄 Course {course_id} updated")
        return course_response(self.get_course(course_id))

    def delete_course(self, course_id: int) -> dict:
        course = self.get_course(course_id)
        try:
            self.db.delete(course)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Delete of course {course_id} blocked: {e.orig}")
            raise HTTPException(
                status_code=400,
                detail="Cannot delete a course that students, tutors or tutor subjects still reference",
            ) from e
        logger.info(f"🗑️ Course {course_id} deleted")
        return {"message": "Course deleted successfully"}

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def list_subjects(self, course_id: int) -> list[Subject]:
        self.get_course(course_id)
        return self.repo.subjects_for_course(self.db, course_id)

    def _get_course_subject(self, course_id: int, subject_id: int) -> Subject:
        subject = self.repo.get_course_subject(self.db, course_id, subject_id)
        if not subject:
            raise HTTPException(status_code=404, detail="Subject not found for course")
        return subject

    def create_subject(self, course_id: int, data: SubjectCreate) -> Subject:
        self.get_course(course_id)
        subject = Subject(
            subject_name=data.subject_name.strip(),
            semester=data.semester.strip() if data.semester else None,
            course_id=course_id,
        )
        self.db.add(subject)
        self.db.commit()
        self.db.refresh(subject)
        logger.info(f"✅ Subject created: {subject.subject_name} (course {course_id})")
        return subject

    def update_subject(self, course_id: int, subject_id: int, data: SubjectUpdate) -> Subject:
        subject = self._get_course_subject(course_id, subject_id)
        if data.subject_name is not None:
            subject.subject_name = data.subject_name.strip()
        if data.semester is not None:
            subject.semester = data.semester.strip() or None
        self.db.commit()
        self.db.refresh(subject)
        return subject

    def delete_subject(self, course_id: int, subject_id: int) -> dict:
        subject = self._get_course_subject(course_id, subject_id)
        try:
            self.db.delete(subject)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=400, detail="Cannot delete a subject that tutors or sessions still reference"
            ) from e
        logger.info(f"🗑️ Subject {subject_id} deleted from course {course_id}")
        return {"message": "Subject deleted successfully"}

    def all_subjects(self) -> list[Subject]:
        return self.repo.all_subjects(self.db)
