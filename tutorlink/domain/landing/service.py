"""Landing service - public counters and contact messages"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import EmailDeliveryError, send_contact_email
from ...models import BookingRequest, Course, Tutor, University, User
from ...security_utils import sanitize_text
from .schemas import ContactRequest, LandingStats

logger = logging.getLogger(__name__)


class LandingService:
    def __init__(self, db: Session):
        self.db = db

    def get_stats(self) -> LandingStats:
        return LandingStats(
            users=self.db.query(User).filter(User.password.isnot(None)).count(),
            tutors=self.db.query(Tutor).filter(Tutor.status == "approved").count(),
            universities=self.db.query(University).filter(University.status == "active").count(),
            courses=self.db.query(Course).count(),
            sessions=self.db.query(BookingRequest).filter(BookingRequest.status == "completed").count(),
        )

    async def send_contact(self, data: ContactRequest) -> dict:
        name = sanitize_text(data.name, max_length=255)
        message = sanitize_text(data.message, max_length=5000)
        if not name or not message:
            raise HTTPException(status_code=400, detail="Name and message are required")

        try:
            await send_contact_email(sender_name=name, sender_email=data.email, message=message)
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to forward contact message from {data.email}: {e}")
            raise HTTPException(
                status_code=400, detail="Failed to send your message. Please try again later."
            ) from e

        logger.info(f"📧 Contact message forwarded from {data.email}")
        return {"message": "Thank you for reaching out! We will get back to you soon."}
