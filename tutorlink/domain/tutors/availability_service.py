"""Availability service - weekly schedules and admin-reviewed change requests"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import DAYS_OF_WEEK, AvailabilityChangeRequest, Tutor, TutorAvailability
from ...security_utils import sanitize_text
from ..notifications.service import notify_admins
from .repository import TutorRepository
from .scheduling import build_slot, format_minutes, parse_hhmm, validate_weekly_slots
from .schemas import (
    AvailabilityResponse,
    AvailabilityUpdate,
    ChangeRequestCreate,
    ChangeRequestDecision,
    ChangeRequestResponse,
)

logger = logging.getLogger(__name__)


def _change_request_response(request: AvailabilityChangeRequest) -> ChangeRequestResponse:
    return ChangeRequestResponse(
        request_id=request.request_id,
        tutor_id=request.tutor_id,
        tutor_name=request.tutor.user.name if request.tutor else None,
        day_of_week=request.day_of_week,
        start_time=request.start_time,
        end_time=request.end_time,
        reason=request.reason,
        status=request.status,
        admin_notes=request.admin_notes,
        created_at=request.created_at,
    )


class AvailabilityService:
    """Service layer for tutor availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TutorRepository()

    def get_availability(self, tutor_id: int) -> list[AvailabilityResponse]:
        rows = self.repo.availability(self.db, tutor_id)
        rows.sort(key=lambda r: (DAYS_OF_WEEK.index(r.day_of_week), parse_hhmm(r.start_time)))
        return [AvailabilityResponse.model_validate(r) for r in rows]

    def replace_availability(self, tutor: Tutor, data: AvailabilityUpdate) -> list[AvailabilityResponse]:
        """Swap the whole weekly schedule in one transaction"""
        try:
            slots = validate_weekly_slots((s.day_of_week, s.start_time, s.end_time) for s in data.slots)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        removed = self.repo.clear_availability(self.db, tutor.tutor_id)
        for slot in slots:
            self.db.add(
                TutorAvailability(
                    tutor_id=tutor.tutor_id,
                    day_of_week=slot.day_of_week,
                    start_time=format_minutes(slot.start),
                    end_time=format_minutes(slot.end),
                )
            )
        self.db.commit()

        logger.info(f"🗓️ Tutor {tutor.tutor_id} availability replaced ({removed} -> {len(slots)} slots)")
        return self.get_availability(tutor.tutor_id)

    # ------------------------------------------------------------------
    # Change requests
    # ------------------------------------------------------------------

    def create_change_request(self, tutor: Tutor, data: ChangeRequestCreate) -> ChangeRequestResponse:
        try:
            slot = build_slot(data.day_of_week, data.start_time, data.end_time)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        request = AvailabilityChangeRequest(
            tutor_id=tutor.tutor_id,
            day_of_week=slot.day_of_week,
            start_time=format_minutes(slot.start),
            end_time=format_minutes(slot.end),
            reason=sanitize_text(data.reason),
            status="pending",
        )
        self.db.add(request)
        notify_admins(
            self.db,
            f"{tutor.user.name} requested an availability change for {slot.day_of_week} "
            f"({request.start_time} - {request.end_time}).",
        )
        self.db.commit()
        self.db.refresh(request)

        logger.info(f"📤 Tutor {tutor.tutor_id} filed availability change request {request.request_id}")
        return _change_request_response(request)

    def list_change_requests(self, tutor: Tutor) -> list[ChangeRequestResponse]:
        return [
            _change_request_response(r) for r in self.repo.change_requests(self.db, tutor_id=tutor.tutor_id)
        ]

    def pending_change_requests(self) -> list[ChangeRequestResponse]:
        return [_change_request_response(r) for r in self.repo.change_requests(self.db, status="pending")]

    def decide_change_request(self, request_id: int, data: ChangeRequestDecision) -> ChangeRequestResponse:
        request = self.repo.get_change_request(self.db, request_id)
        if not request:
            raise HTTPException(status_code=404, detail="Availability change request not found")
        if request.status != "pending":
            raise HTTPException(status_code=400, detail=f"This request has already been {request.status}")

        if data.status == "approved":
            self.repo.clear_availability(self.db, request.tutor_id, request.day_of_week)
            self.db.add(
                TutorAvailability(
                    tutor_id=request.tutor_id,
                    day_of_week=request.day_of_week,
                    start_time=request.start_time,
                    end_time=request.end_time,
                )
            )

        request.status = data.status
        request.admin_notes = sanitize_text(data.admin_notes)
        self.db.commit()
        self.db.refresh(request)

        logger.info(f"✅ Availability change request {request_id} {data.status}")
        return _change_request_response(request)
