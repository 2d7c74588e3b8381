"""
Payment service - proof-of-payment review workflow

A tutee uploads proof for an accepted booking, an admin confirms or rejects it,
then the tutor confirms receipt (booking becomes upcoming) or disputes it.
"""

import logging
import time
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...auth import ensure_tutor_access
from ...email_service import EmailDeliveryError, send_payment_status_email
from ...models import BookingRequest, Payment, User
from ...models import Session as TutoringSession
from ...security_utils import sanitize_text
from ...shared.formatting import (
    format_peso,
    format_session_date,
    format_session_time,
    quantize_amount,
    session_start,
)
from ...storage import ALLOWED_DOCUMENT_TYPES, PAYMENT_PROOFS_DIR, save_upload, stored_files
from ..notifications.service import notify, notify_admins
from ..tutors.booking_service import (
    UNDER_REVIEW_PAYMENT_STATUSES,
    describe_booking,
    require_booking_status,
)
from ..tutors.repository import TutorRepository
from .repository import PaymentRepository
from .schemas import DisputeUpdate, PaymentRejectRequest, PaymentResponse

logger = logging.getLogger(__name__)


def payment_response(payment: Payment) -> PaymentResponse:
    booking = payment.booking_request
    return PaymentResponse(
        payment_id=payment.payment_id,
        booking_request_id=payment.booking_request_id,
        student_id=payment.student_id,
        student_name=payment.student.name if payment.student else None,
        tutor_id=payment.tutor_id,
        tutor_name=payment.tutor.user.name if payment.tutor else None,
        subject=booking.subject if booking else None,
        session_date=booking.date if booking else None,
        session_time=booking.time if booking else None,
        amount=payment.amount,
        status=payment.status,
        dispute_status=payment.dispute_status,
        dispute_proof_url=payment.dispute_proof_url,
        payment_proof=booking.payment_proof if booking else None,
        admin_note=payment.admin_note,
        created_at=payment.created_at,
    )


def require_payment_status(payment: Payment, expected: str, action: str) -> None:
    if payment.status != expected:
        raise HTTPException(
            status_code=400, detail=f"Cannot {action} a payment that is {payment.status}"
        )


class PaymentService:
    """Service layer for payments and their review"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.tutor_repo = TutorRepository()

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_payment(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    def list_payments(self) -> list[PaymentResponse]:
        return [payment_response(p) for p in self.repo.list_payments(self.db)]

    def update_dispute(self, payment_id: int, data: DisputeUpdate) -> PaymentResponse:
        payment = self.get_payment(payment_id)
        payment.dispute_status = data.dispute_status
        if data.admin_note is not None:
            payment.admin_note = sanitize_text(data.admin_note)
        self.db.commit()
        logger.info(f"🔄 Payment {payment_id} dispute status set to {data.dispute_status}")
        return payment_response(payment)

    # ------------------------------------------------------------------
    # Tutee: proof of payment
    # ------------------------------------------------------------------

    async def submit_proof(self, booking_id: int, file: UploadFile, student: User) -> PaymentResponse:
        booking = self.tutor_repo.get_booking(self.db, booking_id)
        if not booking or booking.student_id != student.user_id:
            raise HTTPException(status_code=404, detail="Booking request not found")
        require_booking_status(booking, ("awaiting_payment",), "pay for")
        if any(p.status in UNDER_REVIEW_PAYMENT_STATUSES for p in booking.payments):
            raise HTTPException(status_code=400, detail="A payment for this booking is already under review")

        rate = booking.tutor.session_rate_per_hour
        if rate is None:
            raise HTTPException(status_code=400, detail="This tutor has not set a session rate yet")
        amount = quantize_amount(rate * booking.duration)

        with stored_files() as stored:
            booking.payment_proof = await save_upload(
                file,
                PAYMENT_PROOFS_DIR,
                f"paymentProof_{booking.id}_{int(time.time() * 1000)}",
                allowed_types=ALLOWED_DOCUMENT_TYPES,
            )
            stored.append(booking.payment_proof)
            payment = Payment(
                booking_request_id=booking.id,
                student_id=student.user_id,
                tutor_id=booking.tutor_id,
                amount=amount,
                status="pending",
                dispute_status="none",
            )
            self.db.add(payment)
            notify_admins(
                self.db,
                f"{student.name} submitted a payment of {format_peso(amount)} for {describe_booking(booking)}. "
                "Please review the proof.",
                subject_name=booking.subject,
                booking_id=booking.id,
            )
            self.db.commit()

        logger.info(f"📤 Payment proof submitted for booking {booking_id}: {format_peso(amount)}")
        return payment_response(self.get_payment(payment.payment_id))

    # ------------------------------------------------------------------
    # Admin review
    # ------------------------------------------------------------------

    def admin_confirm(self, payment_id: int) -> PaymentResponse:
        payment = self.get_payment(payment_id)
        require_payment_status(payment, "pending", "confirm")

        payment.status = "admin_confirmed"
        booking = payment.booking_request
        what = f"{booking.subject} on {format_session_date(booking.date)}" if booking else "your session"
        notify(
            self.db,
            payment.tutor.user,
            f"Payment of {format_peso(payment.amount)} for {what} has been approved by admin. "
            "Please confirm receipt.",
            subject_name=booking.subject if booking else None,
            booking_id=payment.booking_request_id,
        )
        self.db.commit()

        logger.info(f"✅ Payment {payment_id} confirmed by admin, awaiting tutor confirmation")
        return payment_response(payment)

    async def admin_reject(self, payment_id: int, data: PaymentRejectRequest) -> PaymentResponse:
        payment = self.get_payment(payment_id)
        require_payment_status(payment, "pending", "reject")

        payment.status = "rejected"
        payment.admin_note = sanitize_text(data.admin_note)
        booking = payment.booking_request
        self._notify_rejection(payment, booking, "was rejected by admin", payment.admin_note)
        self.db.commit()

        logger.info(f"🚫 Payment {payment_id} rejected by admin")
        await self._email_tutee(payment, booking, confirmed=False, note=payment.admin_note)
        return payment_response(payment)

    # ------------------------------------------------------------------
    # Tutor confirmation of receipt
    # ------------------------------------------------------------------

    def _tutor_booking_payment(self, booking_id: int, user: User, action: str) -> tuple[BookingRequest, Payment]:
        booking = self.tutor_repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking request not found")
        ensure_tutor_access(user, booking.tutor)
        require_booking_status(booking, ("awaiting_payment",), action)

        payment = self.repo.latest_for_booking(self.db, booking.id)
        if payment is None:
            raise HTTPException(status_code=400, detail="No payment has been submitted for this booking")
        if payment.status != "admin_confirmed":
            raise HTTPException(
                status_code=400,
                detail=f"Payment must be confirmed by an admin first (current status: {payment.status})",
            )
        return booking, payment

    async def tutor_approve(self, booking_id: int, user: User) -> PaymentResponse:
        booking, payment = self._tutor_booking_payment(booking_id, user, "approve payment for")

        payment.status = "confirmed"
        booking.status = "upcoming"
        start = session_start(booking.date, booking.time)
        self.db.add(
            TutoringSession(
                booking_request_id=booking.id,
                student_id=booking.student_id,
                tutor_id=booking.tutor_id,
                subject_id=self.repo.tutor_subject_id(self.db, booking.tutor_id, booking.subject),
                start_time=start,
                end_time=start + timedelta(hours=float(booking.duration)),
                status="scheduled",
            )
        )
        notify(
            self.db,
            booking.student,
            f"Your payment of {format_peso(payment.amount)} for {booking.subject} has been confirmed.",
            subject_name=booking.subject,
            booking_id=booking.id,
        )
        notify(
            self.db,
            booking.student,
            f"Your session with {booking.tutor.user.name} for {describe_booking(booking)} is now upcoming.",
            subject_name=booking.subject,
            session_date=start,
            booking_id=booking.id,
        )
        self.db.commit()

        logger.info(f"✅ Booking {booking_id} payment confirmed by tutor, session scheduled")
        await self._email_tutee(payment, booking, confirmed=True)
        return payment_response(self.get_payment(payment.payment_id))

    async def tutor_reject(self, booking_id: int, user: User) -> PaymentResponse:
        booking, payment = self._tutor_booking_payment(booking_id, user, "reject payment for")

        payment.status = "rejected"
        payment.dispute_status = "open"
        self._notify_rejection(payment, booking, "was not received by your tutor")
        notify_admins(
            self.db,
            f"{booking.tutor.user.name} disputed payment #{payment.payment_id} "
            f"for {describe_booking(booking)}.",
            subject_name=booking.subject,
            booking_id=booking.id,
        )
        self.db.commit()

        logger.warning(f"⚠️ Payment {payment.payment_id} disputed by tutor for booking {booking_id}")
        await self._email_tutee(
            payment, booking, confirmed=False, note="Your tutor reported that the payment was not received."
        )
        return payment_response(self.get_payment(payment.payment_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify_rejection(
        self, payment: Payment, booking: Optional[BookingRequest], reason: str, note: Optional[str] = None
    ) -> None:
        """Tell the tutee and reopen the booking for a fresh proof upload"""
        if booking is None:
            return
        booking.payment_proof = None
        message = f"Your payment of {format_peso(payment.amount)} for {describe_booking(booking)} {reason}."
        if note:
            message += f" Note: {note}"
        message += " Please upload a new proof of payment."
        notify(self.db, booking.student, message, subject_name=booking.subject, booking_id=booking.id)

    async def _email_tutee(
        self, payment: Payment, booking: Optional[BookingRequest], confirmed: bool, note: Optional[str] = None
    ) -> None:
        if booking is None or booking.student is None:
            return
        try:
            await send_payment_status_email(
                to=booking.student.email,
                student_name=booking.student.name or "Student",
                subject=booking.subject,
                session_date=f"{format_session_date(booking.date)} at {format_session_time(booking.time)}",
                amount=format_peso(payment.amount),
                confirmed=confirmed,
                note=note,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to email payment update for payment {payment.payment_id}: {e}")
