"""Landing page schemas"""

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email


class LandingStats(BaseModel):
    users: int
    tutors: int
    universities: int
    courses: int
    sessions: int


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str
    message: str = Field(min_length=1, max_length=5000)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)
