"""University router - public listing, admin management"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import UniversityCreate, UniversityResponse, UniversityUpdate
from .service import UniversityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/universities", tags=["Universities"])


def get_university_service(db: Session = Depends(get_db)) -> UniversityService:
    """Dependency injection for UniversityService"""
    return UniversityService(db)


@router.get("", response_model=list[UniversityResponse])
async def list_universities(service: UniversityService = Depends(get_university_service)):
    """Public: shown on the registration forms"""
    return service.list_universities()


@router.post("", response_model=UniversityResponse, status_code=201)
async def create_university(
    data: UniversityCreate,
    _: User = Depends(require_admin),
    service: UniversityService = Depends(get_university_service),
):
    return service.create_university(data)


@router.patch("/{university_id}", response_model=UniversityResponse)
async def update_university(
    university_id: int,
    data: UniversityUpdate,
    _: User = Depends(require_admin),
    service: UniversityService = Depends(get_university_service),
):
    return service.update_university(university_id, data)


@router.delete("/{university_id}")
async def delete_university(
    university_id: int,
    _: User = Depends(require_admin),
    service: UniversityService = Depends(get_university_service),
):
    return service.delete_university(university_id)


@router.post("/{university_id}/logo", response_model=UniversityResponse)
async def upload_logo(
    university_id: int,
    file: UploadFile = File(...),
    _: User = Depends(require_admin),
    service: UniversityService = Depends(get_university_service),
):
    return await service.upload_logo(university_id, file)
