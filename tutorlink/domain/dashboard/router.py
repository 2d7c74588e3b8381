"""Dashboard router - admin statistics"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import DashboardStats
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    _: User = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_stats()
