"""Course and subject schemas"""

from typing import Optional

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    course_name: str = Field(min_length=1, max_length=255)
    university_id: int


class CourseUpdate(BaseModel):
    course_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    university_id: Optional[int] = None


class CourseResponse(BaseModel):
    course_id: int
    course_name: str
    university_id: Optional[int] = None
    university_name: Optional[str] = None
    university_acronym: Optional[str] = None


class SubjectCreate(BaseModel):
    subject_name: str = Field(min_length=1, max_length=255)
    semester: Optional[str] = Field(default=None, max_length=50)


class SubjectUpdate(BaseModel):
    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    semester: Optional[str] = Field(default=None, max_length=50)


class SubjectResponse(BaseModel):
    subject_id: int
    subject_name: str
    semester: Optional[str] = None
    course_id: Optional[int] = None

    class Config:
        from_attributes = True


class SubjectSummary(BaseModel):
    subject_id: int
    subject_name: str

    class Config:
        from_attributes = True
