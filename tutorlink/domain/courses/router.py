"""Course router - courses, per-course subjects and the flat subject list"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    SubjectCreate,
    SubjectResponse,
    SubjectSummary,
    SubjectUpdate,
)
from .service import CourseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])
subjects_router = APIRouter(prefix="/subjects", tags=["Subjects"])


def get_course_service(db: Session = Depends(get_db)) -> CourseService:
    """Dependency injection for CourseService"""
    return CourseService(db)


# ============================================================================
# COURSES
# ============================================================================


@router.get("", response_model=list[CourseResponse])
async def list_courses(
    university_id: Optional[int] = Query(None),
    service: CourseService = Depends(get_course_service),
):
    """Public: courses with their university, optionally for one university"""
    return service.list_courses(university_id)


@router.post("", response_model=CourseResponse, status_code=201)
async def create_course(
    data: CourseCreate,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    return service.create_course(data)


@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    data: CourseUpdate,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    return service.update_course(course_id, data)


@router.delete("/{course_id}")
async def delete_course(
    course_id: int,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    """Removes the course together with its subjects"""
    return service.delete_course(course_id)


# ============================================================================
# SUBJECTS OF A COURSE
# ============================================================================


@router.get("/{course_id}/subjects", response_model=list[SubjectResponse])
async def list_course_subjects(course_id: int, service: CourseService = Depends(get_course_service)):
    return service.list_subjects(course_id)


@router.post("/{course_id}/subjects", response_model=SubjectResponse, status_code=201)
async def create_subject(
    course_id: int,
    data: SubjectCreate,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    return service.create_subject(course_id, data)


@router.patch("/{course_id}/subjects/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    course_id: int,
    subject_id: int,
    data: SubjectUpdate,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    return service.update_subject(course_id, subject_id, data)


@router.delete("/{course_id}/subjects/{subject_id}")
async def delete_subject(
    course_id: int,
    subject_id: int,
    _: User = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
):
    return service.delete_subject(course_id, subject_id)


# ============================================================================
# ALL SUBJECTS
# ============================================================================


@subjects_router.get("", response_model=list[SubjectSummary])
async def list_subjects(service: CourseService = Depends(get_course_service)):
    """Public: every subject, sorted by name"""
    return service.all_subjects()
