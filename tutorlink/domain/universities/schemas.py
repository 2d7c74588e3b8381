"""University domain schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _normalize_domain(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower().lstrip("@")
    if not v:
        return None
    if "." not in v or " " in v:
        raise ValueError("Email domain must look like school.edu.ph")
    return v


class UniversityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    acronym: Optional[str] = Field(default=None, max_length=50)
    email_domain: Optional[str] = Field(default=None, max_length=255)
    status: Literal["active", "inactive"] = "active"

    @field_validator("email_domain")
    @classmethod
    def check_domain(cls, v):
        return _normalize_domain(v)


class UniversityUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    acronym: Optional[str] = Field(default=None, max_length=50)
    email_domain: Optional[str] = Field(default=None, max_length=255)
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("email_domain")
    @classmethod
    def check_domain(cls, v):
        return _normalize_domain(v)


class UniversityResponse(BaseModel):
    university_id: int
    name: str
    acronym: Optional[str] = None
    email_domain: Optional[str] = None
    status: str
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
