"""Tutor router - applications, profiles, subjects, availability and bookings"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin, require_tutee, require_tutor, require_tutor_owner
from ...database import get_db
from ...models import Tutor, User
from ..payments.schemas import PaymentResponse
from ..payments.service import PaymentService
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .schemas import (
    AvailabilityResponse,
    AvailabilityUpdate,
    BookingCreate,
    BookingResponse,
    ChangeRequestCreate,
    ChangeRequestDecision,
    ChangeRequestResponse,
    DocumentResponse,
    EarningsStatsResponse,
    OpenSlotsResponse,
    PendingSubjectApplicationResponse,
    SubjectDecision,
    SubjectsRequest,
    TutorApplicationResponse,
    TutorPaymentResponse,
    TutorProfileResponse,
    TutorProfileUpdate,
    TutorStatusUpdate,
    TutorSubjectResponse,
)
from .service import TutorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tutors", tags=["Tutors"])


def get_tutor_service(db: Session = Depends(get_db)) -> TutorService:
    """Dependency injection for TutorService"""
    return TutorService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# ============================================================================
# ADMIN REVIEW QUEUES
# ============================================================================


@router.get("/applications", response_model=list[TutorApplicationResponse])
async def list_applications(
    _: User = Depends(require_admin),
    service: TutorService = Depends(get_tutor_service),
):
    """Pending tutor applications with documents and submitted subjects"""
    return service.list_applications()


@router.get("/subject-applications/pending", response_model=list[PendingSubjectApplicationResponse])
async def pending_subject_applications(
    _: User = Depends(require_admin),
    service: TutorService = Depends(get_tutor_service),
):
    return service.pending_subject_applications()


@router.patch("/subject-applications/{tutor_subject_id}", response_model=TutorSubjectResponse)
async def decide_subject_application(
    tutor_subject_id: int,
    data: SubjectDecision,
    _: User = Depends(require_admin),
    service: TutorService = Depends(get_tutor_service),
):
    return await service.decide_subject_application(tutor_subject_id, data)


@router.get("/availability-change-requests/pending", response_model=list[ChangeRequestResponse])
async def pending_change_requests(
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.pending_change_requests()


@router.patch("/availability-change-requests/{request_id}", response_model=ChangeRequestResponse)
async def decide_change_request(
    request_id: int,
    data: ChangeRequestDecision,
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Approval replaces that weekday's slots with the requested one"""
    return service.decide_change_request(request_id, data)


# ============================================================================
# BOOKING DECISIONS (by booking id)
# ============================================================================


@router.post("/booking-requests/{booking_id}/accept", response_model=BookingResponse)
async def accept_booking(
    booking_id: int,
    current_user: User = Depends(require_tutor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.accept(booking_id, current_user)


@router.post("/booking-requests/{booking_id}/decline", response_model=BookingResponse)
async def decline_booking(
    booking_id: int,
    current_user: User = Depends(require_tutor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.decline(booking_id, current_user)


@router.post("/booking-requests/{booking_id}/payment-approve", response_model=PaymentResponse)
async def approve_booking_payment(
    booking_id: int,
    current_user: User = Depends(require_tutor),
    service: PaymentService = Depends(get_payment_service),
):
    """Tutor confirms receipt of an admin-confirmed payment; the session becomes upcoming"""
    return await service.tutor_approve(booking_id, current_user)


@router.post("/booking-requests/{booking_id}/payment-reject", response_model=PaymentResponse)
async def reject_booking_payment(
    booking_id: int,
    current_user: User = Depends(require_tutor),
    service: PaymentService = Depends(get_payment_service),
):
    """Tutor reports the payment as not received, opening a dispute"""
    return await service.tutor_reject(booking_id, current_user)


@router.post("/booking-requests/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: int,
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_tutor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.complete(booking_id, current_user, file)


# ============================================================================
# LOOKUPS BY USER
# ============================================================================


@router.get("/by-user/{user_id}/tutor-id")
async def tutor_id_for_user(
    user_id: int,
    _: User = Depends(get_current_user),
    service: TutorService = Depends(get_tutor_service),
):
    return service.tutor_id_for_user(user_id)


@router.get("/{user_id}/status")
async def application_status(
    user_id: int,
    _: User = Depends(get_current_user),
    service: TutorService = Depends(get_tutor_service),
):
    """Application status for the tutor profile owned by user_id"""
    return service.application_status(user_id)


@router.patch("/{tutor_id}/status", response_model=TutorApplicationResponse)
async def update_application_status(
    tutor_id: int,
    data: TutorStatusUpdate,
    _: User = Depends(require_admin),
    service: TutorService = Depends(get_tutor_service),
):
    return await service.update_status(tutor_id, data)


# ============================================================================
# PROFILE & APPLICATION
# ============================================================================


@router.get("/{tutor_id}/profile", response_model=TutorProfileResponse)
async def get_profile(
    tutor_id: int,
    _: User = Depends(get_current_user),
    service: TutorService = Depends(get_tutor_service),
):
    return service.get_profile(tutor_id)


@router.put("/{tutor_id}/profile", response_model=TutorProfileResponse)
async def update_profile(
    data: TutorProfileUpdate,
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return service.update_profile(tutor, data)


@router.post("/{tutor_id}/profile-image")
async def upload_profile_image(
    file: UploadFile = File(...),
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return await service.upload_profile_image(tutor, file)


@router.post("/{tutor_id}/gcash-qr")
async def upload_gcash_qr(
    file: UploadFile = File(...),
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return await service.upload_gcash_qr(tutor, file)


@router.post("/{tutor_id}/documents", response_model=list[DocumentResponse])
async def upload_documents(
    files: list[UploadFile] = File(...),
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    """Supporting documents for the tutor application (images or PDF)"""
    return await service.upload_documents(tutor, files)


@router.post("/{tutor_id}/subjects", response_model=list[TutorSubjectResponse])
async def add_subjects(
    data: SubjectsRequest,
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return service.add_subjects(tutor, data.subjects)


@router.post("/{tutor_id}/submit-application")
async def submit_application(
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return service.submit_application(tutor)


# ============================================================================
# SUBJECT EXPERTISE
# ============================================================================


@router.post("/{tutor_id}/subject-application", response_model=TutorSubjectResponse)
async def apply_for_subject(
    subject_name: str = Form(...),
    files: list[UploadFile] = File(...),
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return await service.apply_for_subject(tutor, subject_name, files)


@router.get("/{tutor_id}/subject-applications", response_model=list[TutorSubjectResponse])
async def list_subject_applications(
    tutor: Tutor = Depends(require_tutor_owner),
    service: TutorService = Depends(get_tutor_service),
):
    return service.list_subject_applications(tutor)


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/{tutor_id}/availability", response_model=list[AvailabilityResponse])
async def get_availability(
    tutor_id: int,
    _: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.get_availability(tutor_id)


@router.post("/{tutor_id}/availability", response_model=list[AvailabilityResponse])
async def replace_availability(
    data: AvailabilityUpdate,
    tutor: Tutor = Depends(require_tutor_owner),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Replace the whole weekly schedule"""
    return service.replace_availability(tutor, data)


@router.post("/{tutor_id}/availability-change-request", response_model=ChangeRequestResponse)
async def create_change_request(
    data: ChangeRequestCreate,
    tutor: Tutor = Depends(require_tutor_owner),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.create_change_request(tutor, data)


@router.get("/{tutor_id}/availability-change-requests", response_model=list[ChangeRequestResponse])
async def list_change_requests(
    tutor: Tutor = Depends(require_tutor_owner),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.list_change_requests(tutor)


# ============================================================================
# BOOKINGS, SESSIONS & EARNINGS
# ============================================================================


@router.get("/{tutor_id}/open-slots", response_model=OpenSlotsResponse)
async def open_slots(
    tutor_id: int,
    date: date = Query(...),
    duration: Decimal = Query(Decimal("1")),
    service: BookingService = Depends(get_booking_service),
):
    """Start times on a date where a session of the given length can still be booked"""
    return service.open_slots(tutor_id, date, duration)


@router.post("/{tutor_id}/booking-requests", response_model=BookingResponse, status_code=201)
async def create_booking_request(
    tutor_id: int,
    data: BookingCreate,
    current_user: User = Depends(require_tutee),
    service: BookingService = Depends(get_booking_service),
):
    return service.create_booking(tutor_id, data, current_user)


@router.get("/{tutor_id}/booking-requests", response_model=list[BookingResponse])
async def list_booking_requests(
    tutor: Tutor = Depends(require_tutor_owner),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_for_tutor(tutor)


@router.get("/{tutor_id}/sessions", response_model=list[BookingResponse])
async def list_sessions(
    tutor: Tutor = Depends(require_tutor_owner),
    service: BookingService = Depends(get_booking_service),
):
    return service.sessions(tutor)


@router.get("/{tutor_id}/payments", response_model=list[TutorPaymentResponse])
async def list_payments(
    tutor: Tutor = Depends(require_tutor_owner),
    service: BookingService = Depends(get_booking_service),
):
    return service.payments(tutor)


@router.get("/{tutor_id}/earnings-stats", response_model=EarningsStatsResponse)
async def earnings_stats(
    tutor: Tutor = Depends(require_tutor_owner),
    service: BookingService = Depends(get_booking_service),
):
    return service.earnings_stats(tutor)
