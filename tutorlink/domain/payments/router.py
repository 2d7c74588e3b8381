"""Payment router - admin review of tutee payments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import DisputeUpdate, PaymentRejectRequest, PaymentResponse
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    """All payments, newest first"""
    return service.list_payments()


@router.patch("/{payment_id}/dispute", response_model=PaymentResponse)
async def update_dispute(
    payment_id: int,
    data: DisputeUpdate,
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    return service.update_dispute(payment_id, data)


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(
    payment_id: int,
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    """First review step; the tutor still has to confirm receipt"""
    return service.admin_confirm(payment_id)


@router.post("/{payment_id}/reject", response_model=PaymentResponse)
async def reject_payment(
    payment_id: int,
    data: Optional[PaymentRejectRequest] = None,
    _: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.admin_reject(payment_id, data or PaymentRejectRequest())
