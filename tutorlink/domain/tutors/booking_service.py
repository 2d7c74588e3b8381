"""Booking service - booking requests, the tutor side of their lifecycle, and earnings"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ... import config
from ...auth import ensure_tutor_access
from ...email_service import EmailDeliveryError, send_booking_status_email
from ...models import BookingRequest, Tutor, User
from ...security_utils import sanitize_text
from ...shared.formatting import (
    format_session_date,
    format_session_time,
    quantize_amount,
    session_start,
)
from ...storage import ALLOWED_DOCUMENT_TYPES, SESSION_PROOFS_DIR, save_upload, stored_files
from ..notifications.service import notify
from .repository import SESSION_VIEW_STATUSES, TutorRepository
from .scheduling import (
    WeeklySlot,
    booking_interval,
    build_slot,
    find_conflict,
    fits_availability,
    format_minutes,
    open_start_times,
    parse_duration,
    weekday_name,
)
from .schemas import (
    BookingCreate,
    BookingResponse,
    EarningsStatsResponse,
    OpenSlotsResponse,
    PaymentSummary,
    TutorPaymentResponse,
)

logger = logging.getLogger(__name__)

UNDER_REVIEW_PAYMENT_STATUSES = ("pending", "admin_confirmed")


def booking_response(booking: BookingRequest) -> BookingResponse:
    payment = max(booking.payments, key=lambda p: p.payment_id) if booking.payments else None
    return BookingResponse(
        id=booking.id,
        tutor_id=booking.tutor_id,
        tutor_name=booking.tutor.user.name if booking.tutor else None,
        student_id=booking.student_id,
        student_name=booking.student.name if booking.student else None,
        student_email=booking.student.email if booking.student else None,
        subject=booking.subject,
        date=booking.date,
        time=booking.time,
        duration=booking.duration,
        status=booking.status,
        payment_proof=booking.payment_proof,
        tutor_proof=booking.tutor_proof,
        student_notes=booking.student_notes,
        created_at=booking.created_at,
        payment=PaymentSummary.model_validate(payment) if payment else None,
    )


def describe_booking(booking: BookingRequest) -> str:
    """Summary such as "Calculus on March 04, 2026 at 2:30 PM" for notification text"""
    return (
        f"{booking.subject} on {format_session_date(booking.date)} "
        f"at {format_session_time(booking.time)}"
    )


def require_booking_status(booking: BookingRequest, allowed: tuple, action: str) -> None:
    """Reject a lifecycle transition out of any state not listed in allowed"""
    if booking.status not in allowed:
        raise HTTPException(
            status_code=400, detail=f"Cannot {action} a booking that is {booking.status}"
        )


class BookingService:
    """Service layer for booking requests and tutor sessions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TutorRepository()

    def get_booking(self, booking_id: int) -> BookingRequest:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking request not found")
        return booking

    def _get_tutor_booking(self, booking_id: int, user: User) -> BookingRequest:
        booking = self.get_booking(booking_id)
        ensure_tutor_access(user, booking.tutor)
        return booking

    def _day_slots(self, tutor_id: int, on_date: date) -> list[WeeklySlot]:
        rows = self.repo.availability(self.db, tutor_id, weekday_name(on_date))
        return [build_slot(r.day_of_week, r.start_time, r.end_time) for r in rows]

    # ------------------------------------------------------------------
    # Creating bookings
    # ------------------------------------------------------------------

    def create_booking(self, tutor_id: int, data: BookingCreate, student: User) -> BookingResponse:
        """Validate against availability and existing bookings, then insert, all in one transaction"""
        tutor = self.repo.get_tutor_for_update(self.db, tutor_id)
        if not tutor:
            raise HTTPException(status_code=404, detail="Tutor not found")
        if tutor.status != "approved":
            raise HTTPException(status_code=400, detail="This tutor is not accepting bookings yet")
        if tutor.user_id == student.user_id:
            raise HTTPException(status_code=400, detail="You cannot book a session with yourself")
        if data.date < date.today():
            raise HTTPException(status_code=400, detail="Booking date cannot be in the past")

        try:
            duration = parse_duration(data.duration)
            start, end = booking_interval(data.time, duration)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        subject = sanitize_text(data.subject, max_length=255)
        offered = {name.lower(): name for name in self.repo.approved_subject_names(self.db, tutor_id)}
        if subject.lower() not in offered:
            raise HTTPException(status_code=400, detail=f"This tutor does not offer {subject}")
        subject = offered[subject.lower()]

        if not fits_availability(start, end, self._day_slots(tutor_id, data.date)):
            raise HTTPException(status_code=409, detail="Requested time is outside the tutor's availability")

        existing = []
        for other in self.repo.active_bookings_on(self.db, tutor_id, data.date):
            other_start, other_end = booking_interval(other.time, other.duration)
            existing.append((other_start, other_end, other.id))
        conflict_id = find_conflict(start, end, existing)
        if conflict_id is not None:
            logger.warning(f"⚠️ Booking conflict for tutor {tutor_id} on {data.date} with booking {conflict_id}")
            raise HTTPException(status_code=409, detail="Tutor already has a booking at this time")

        booking = BookingRequest(
            tutor_id=tutor_id,
            student_id=student.user_id,
            subject=subject,
            date=data.date,
            time=format_minutes(start),
            duration=duration,
            status="pending",
            student_notes=sanitize_text(data.student_notes),
        )
        self.db.add(booking)
        self.db.flush()

        notify(
            self.db,
            tutor.user,
            f"{student.name} requested a booking for {describe_booking(booking)}",
            subject_name=subject,
            session_date=session_start(booking.date, booking.time),
            booking_id=booking.id,
        )
        self.db.commit()

        logger.info(f"✅ Booking {booking.id} created: student {student.user_id} -> tutor {tutor_id}")
        return booking_response(self.get_booking(booking.id))

    def open_slots(self, tutor_id: int, on_date: date, duration: Decimal) -> OpenSlotsResponse:
        tutor = self.repo.get_tutor(self.db, tutor_id)
        if not tutor or tutor.status != "approved":
            raise HTTPException(status_code=404, detail="Tutor not found")
        try:
            hours = parse_duration(duration)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        slots = []
        if on_date >= date.today():
            booked = [
                booking_interval(b.time, b.duration) for b in self.repo.active_bookings_on(self.db, tutor_id, on_date)
            ]
            slots = open_start_times(self._day_slots(tutor_id, on_date), hours, booked)

        return OpenSlotsResponse(
            tutor_id=tutor_id,
            date=on_date,
            day_of_week=weekday_name(on_date),
            duration=hours,
            slots=slots,
        )

    # ------------------------------------------------------------------
    # Tutor decisions
    # ------------------------------------------------------------------

    def list_for_tutor(self, tutor: Tutor) -> list[BookingResponse]:
        return [booking_response(b) for b in self.repo.bookings_for_tutor(self.db, tutor.tutor_id)]

    async def accept(self, booking_id: int, user: User) -> BookingResponse:
        booking = self._get_tutor_booking(booking_id, user)
        require_booking_status(booking, ("pending",), "accept")

        booking.status = "awaiting_payment"
        notify(
            self.db,
            booking.student,
            f"Your booking for {describe_booking(booking)} was accepted by {booking.tutor.user.name}. "
            "Please send your payment and upload the proof.",
            subject_name=booking.subject,
            booking_id=booking.id,
        )
        self.db.commit()
        logger.info(f"✅ Booking {booking_id} accepted")

        await self._email_decision(booking, accepted=True)
        return booking_response(booking)

    async def decline(self, booking_id: int, user: User) -> BookingResponse:
        booking = self._get_tutor_booking(booking_id, user)
        require_booking_status(booking, ("pending",), "decline")

        booking.status = "declined"
        notify(
            self.db,
            booking.student,
            f"Your booking for {describe_booking(booking)} was declined by {booking.tutor.user.name}.",
            subject_name=booking.subject,
            booking_id=booking.id,
        )
        self.db.commit()
        logger.info(f"🚫 Booking {booking_id} declined")

        await self._email_decision(booking, accepted=False)
        return booking_response(booking)

    async def complete(self, booking_id: int, user: User, proof: Optional[UploadFile] = None) -> BookingResponse:
        booking = self._get_tutor_booking(booking_id, user)
        require_booking_status(booking, ("upcoming",), "complete")

        with stored_files() as stored:
            if proof is not None:
                booking.tutor_proof = await save_upload(
                    proof,
                    SESSION_PROOFS_DIR,
                    f"sessionProof_{booking.id}_{int(time.time() * 1000)}",
                    allowed_types=ALLOWED_DOCUMENT_TYPES,
                )
                stored.append(booking.tutor_proof)

            booking.status = "completed"
            session = self.repo.session_for_booking(self.db, booking.id)
            if session is not None:
                session.status = "completed"
            notify(
                self.db,
                booking.student,
                f"Your session for {describe_booking(booking)} has been marked as completed.",
                subject_name=booking.subject,
                booking_id=booking.id,
            )
            self.db.commit()
        logger.info(f"✅ Booking {booking_id} completed")
        return booking_response(booking)

    def cancel_by_tutee(self, booking_id: int, student: User) -> BookingResponse:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking or booking.student_id != student.user_id:
            raise HTTPException(status_code=404, detail="Booking request not found")
        require_booking_status(booking, ("pending", "awaiting_payment"), "cancel")
        if any(p.status in UNDER_REVIEW_PAYMENT_STATUSES for p in booking.payments):
            raise HTTPException(
                status_code=400, detail="This booking has a payment under review and cannot be cancelled"
            )

        booking.status = "cancelled"
        notify(
            self.db,
            booking.tutor.user,
            f"{student.name} cancelled the booking request for {describe_booking(booking)}.",
            subject_name=booking.subject,
            booking_id=booking.id,
        )
        self.db.commit()
        logger.info(f"🚫 Booking {booking_id} cancelled by student {student.user_id}")
        return booking_response(booking)

    async def _email_decision(self, booking: BookingRequest, accepted: bool) -> None:
        try:
            await send_booking_status_email(
                to=booking.student.email,
                student_name=booking.student.name or "Student",
                tutor_name=booking.tutor.user.name or "your tutor",
                subject=booking.subject,
                session_date=format_session_date(booking.date),
                session_time=format_session_time(booking.time),
                accepted=accepted,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to email booking decision for booking {booking.id}: {e}")

    # ------------------------------------------------------------------
    # Sessions, payments, earnings
    # ------------------------------------------------------------------

    def sessions(self, tutor: Tutor) -> list[BookingResponse]:
        return [
            booking_response(b)
            for b in self.repo.bookings_for_tutor(self.db, tutor.tutor_id, SESSION_VIEW_STATUSES)
        ]

    def payments(self, tutor: Tutor) -> list[TutorPaymentResponse]:
        return [
            TutorPaymentResponse(
                payment_id=p.payment_id,
                booking_request_id=p.booking_request_id,
                student_name=p.student.name if p.student else None,
                subject=p.booking_request.subject if p.booking_request else None,
                session_date=p.booking_request.date if p.booking_request else None,
                amount=p.amount,
                status=p.status,
                dispute_status=p.dispute_status,
                created_at=p.created_at,
            )
            for p in self.repo.payments_for_tutor(self.db, tutor.tutor_id)
        ]

    def earnings_stats(self, tutor: Tutor) -> EarningsStatsResponse:
        tutor_share = Decimal("1") - config.PLATFORM_SHARE
        confirmed = self.repo.sum_payments(self.db, tutor.tutor_id, ("confirmed",))
        pending = self.repo.sum_payments(self.db, tutor.tutor_id, UNDER_REVIEW_PAYMENT_STATUSES)
        completed_sessions, total_hours = self.repo.completed_totals(self.db, tutor.tutor_id)
        return EarningsStatsResponse(
            total_earnings=quantize_amount(confirmed * tutor_share),
            pending_earnings=quantize_amount(pending * tutor_share),
            completed_sessions=completed_sessions,
            total_hours=total_hours,
            average_rating=None,
        )
