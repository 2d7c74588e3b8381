"""Landing router - public endpoints for the marketing page"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import ContactRequest, LandingStats
from .service import LandingService

router = APIRouter(prefix="/landing", tags=["Landing"])

rate_limit_contact = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")


def get_landing_service(db: Session = Depends(get_db)) -> LandingService:
    """Dependency injection for LandingService"""
    return LandingService(db)


@router.get("/stats", response_model=LandingStats)
async def landing_stats(service: LandingService = Depends(get_landing_service)):
    return service.get_stats()


@router.post("/contact")
async def contact(
    data: ContactRequest,
    service: LandingService = Depends(get_landing_service),
    _: None = Depends(rate_limit_contact),
):
    return await service.send_contact(data)
