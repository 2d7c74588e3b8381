from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Status vocabularies
USER_STATUSES = ("active", "inactive", "pending_verification")
USER_TYPES = ("admin", "tutor", "tutee")
TUTOR_STATUSES = ("pending", "approved", "rejected")
REVIEW_STATUSES = ("pending", "approved", "rejected")
BOOKING_STATUSES = (
    "pending",
    "declined",
    "awaiting_payment",
    "upcoming",
    "completed",
    "cancelled",
)
PAYMENT_STATUSES = ("pending", "admin_confirmed", "confirmed", "rejected", "refunded")
DISPUTE_STATUSES = ("none", "open", "under_review", "resolved", "rejected")
SESSION_STATUSES = ("scheduled", "completed", "cancelled")
DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class University(Base):
    __tablename__ = "universities"

    university_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    acronym = Column(String(50), nullable=True)
    email_domain = Column(String(255), nullable=True)  # e.g. bisu.edu.ph
    status = Column(String(20), default="active", nullable=False)
    logo_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    courses = relationship("Course", back_populates="university")


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("course_name", "university_id", name="uq_course_university"),)

    course_id = Column(Integer, primary_key=True, index=True)
    course_name = Column(String(255), nullable=False)
    university_id = Column(Integer, ForeignKey("universities.university_id"), nullable=True)

    university = relationship("University", back_populates="courses")
    subjects = relationship("Subject", back_populates="course", cascade="all, delete-orphan")


class Subject(Base):
    __tablename__ = "subjects"

    subject_id = Column(Integer, primary_key=True, index=True)
    subject_name = Column(String(255), nullable=False)
    semester = Column(String(50), nullable=True)
    course_id = Column(Integer, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=True)

    course = relationship("Course", back_populates="subjects")


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)  # Null for placeholder accounts awaiting registration
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=True)
    user_type = Column(String(20), nullable=True)  # admin, tutor, tutee
    is_verified = Column(Boolean, default=False, nullable=False)
    verification_code = Column(String(10), nullable=True)
    verification_expires = Column(DateTime, nullable=True)
    status = Column(String(30), default="active", nullable=False)
    profile_image_url = Column(String(500), nullable=True)  # Relative path under UPLOAD_DIR
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    admin_profile = relationship("Admin", back_populates="user", uselist=False)
    student_profile = relationship("Student", back_populates="user", uselist=False)
    tutor_profile = relationship("Tutor", back_populates="user", uselist=False)

    @property
    def role(self) -> str:
        """API-facing role derived from the attached profile"""
        if self.admin_profile is not None or self.user_type == "admin":
            return "admin"
        if self.tutor_profile is not None:
            return "tutor"
        return "student"


class Admin(Base):
    __tablename__ = "admins"

    admin_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), unique=True, nullable=False)
    university_id = Column(Integer, ForeignKey("universities.university_id"), nullable=True)
    qr_code_url = Column(String(500), nullable=True)

    user = relationship("User", back_populates="admin_profile")
    university = relationship("University")


class Student(Base):
    __tablename__ = "students"

    student_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), unique=True, nullable=False)
    university_id = Column(Integer, ForeignKey("universities.university_id"), nullable=True)
    course_id = Column(Integer, ForeignKey("courses.course_id"), nullable=True)
    year_level = Column(Integer, nullable=True)

    user = relationship("User", back_populates="student_profile")
    university = relationship("University")
    course = relationship("Course")


class Tutor(Base):
    __tablename__ = "tutors"

    tutor_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), unique=True, nullable=False)
    bio = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    admin_notes = Column(Text, nullable=True)
    gcash_number = Column(String(20), nullable=True)
    gcash_qr_url = Column(String(500), nullable=True)
    session_rate_per_hour = Column(Numeric(10, 2), nullable=True)
    university_id = Column(Integer, ForeignKey("universities.university_id"), nullable=True)
    course_id = Column(Integer, ForeignKey("courses.course_id"), nullable=True)
    year_level = Column(Integer, nullable=True)
    activity_status = Column(String(20), default="offline", nullable=False)

    user = relationship("User", back_populates="tutor_profile")
    university = relationship("University")
    course = relationship("Course")
    subjects = relationship("TutorSubject", back_populates="tutor", cascade="all, delete-orphan")
    documents = relationship("TutorDocument", back_populates="tutor", cascade="all, delete-orphan")
    availability = relationship(
        "TutorAvailability", back_populates="tutor", cascade="all, delete-orphan"
    )


class TutorSubject(Base):
    __tablename__ = "tutor_subjects"

    tutor_subject_id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.subject_id"), nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tutor = relationship("Tutor", back_populates="subjects")
    subject = relationship("Subject")
    documents = relationship("TutorDocument", back_populates="tutor_subject")


class TutorDocument(Base):
    __tablename__ = "tutor_documents"

    document_id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False, index=True)
    tutor_subject_id = Column(
        Integer, ForeignKey("tutor_subjects.tutor_subject_id"), nullable=True
    )  # Set when uploaded as part of a subject application
    file_url = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)

    tutor = relationship("Tutor", back_populates="documents")
    tutor_subject = relationship("TutorSubject", back_populates="documents")


class TutorAvailability(Base):
    __tablename__ = "tutor_availability"

    availability_id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)  # Monday..Sunday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM

    tutor = relationship("Tutor", back_populates="availability")


class AvailabilityChangeRequest(Base):
    __tablename__ = "availability_change_requests"

    request_id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False, index=True)
    day_of_week = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tutor = relationship("Tutor")


class BookingRequest(Base):
    __tablename__ = "booking_requests"

    id = Column(Integer, primary_key=True, index=True)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM start
    duration = Column(Numeric(3, 1), nullable=False)  # hours
    status = Column(String(30), default="pending", nullable=False)
    payment_proof = Column(String(500), nullable=True)
    tutor_proof = Column(String(500), nullable=True)  # Session proof uploaded on completion
    student_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tutor = relationship("Tutor")
    student = relationship("User")
    payments = relationship("Payment", back_populates="booking_request")


class Payment(Base):
    __tablename__ = "payments"

    payment_id = Column(Integer, primary_key=True, index=True)
    booking_request_id = Column(Integer, ForeignKey("booking_requests.id"), nullable=True, index=True)
    student_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    dispute_status = Column(String(20), default="none", nullable=False)
    dispute_proof_url = Column(String(500), nullable=True)
    admin_note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    booking_request = relationship("BookingRequest", back_populates="payments")
    student = relationship("User")
    tutor = relationship("Tutor")


class Session(Base):
    __tablename__ = "sessions"

    session_id = Column(Integer, primary_key=True, index=True)
    booking_request_id = Column(Integer, ForeignKey("booking_requests.id"), nullable=True)
    student_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    tutor_id = Column(Integer, ForeignKey("tutors.tutor_id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.subject_id"), nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), default="scheduled", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    subject = relationship("Subject")


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    changepasscode = Column(String(10), nullable=False)
    expiry_date = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(Integer, primary_key=True, index=True)
    receiver_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    user_type = Column(String(20), nullable=False)  # tutor, tutee, admin
    message = Column(Text, nullable=False)
    subject_name = Column(String(255), nullable=True)
    session_date = Column(DateTime, nullable=True)
    booking_id = Column(Integer, ForeignKey("booking_requests.id"), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("BookingRequest")
