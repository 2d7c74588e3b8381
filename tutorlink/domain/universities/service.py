"""University service - admin management of partner universities"""

import logging

from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import University
from ...storage import UNIVERSITY_LOGOS_DIR, delete_stored_file, save_upload
from .repository import UniversityRepository
from .schemas import UniversityCreate, UniversityUpdate

logger = logging.getLogger(__name__)

DELETE_BLOCKED_MESSAGE = "Cannot delete a university that still has courses or users. Set it inactive instead."


class UniversityService:
    """Service layer for universities"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UniversityRepository()

    def get_university(self, university_id: int) -> University:
        university = self.repo.get_university(self.db, university_id)
        if not university:
            raise HTTPException(status_code=404, detail="University not found")
        return university

    def list_universities(self) -> list[University]:
        return self.repo.list_universities(self.db)

    def create_university(self, data: UniversityCreate) -> University:
        name = data.name.strip()
        if self.repo.name_taken(self.db, name):
            raise HTTPException(status_code=400, detail="A university with this name already exists")

        university = University(
            name=name,
            acronym=data.acronym.strip() if data.acronym else None,
            email_domain=data.email_domain,
            status=data.status,
        )
        self.db.add(university)
        self.db.commit()
        self.db.refresh(university)
        logger.info(f"✅ University created: {university.name} ({university.university_id})")
        return university

    def update_university(self, university_id: int, data: UniversityUpdate) -> University:
        university = self.get_university(university_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("name"):
            updates["name"] = updates["name"].strip()
            if self.repo.name_taken(self.db, updates["name"], exclude_id=university_id):
                raise HTTPException(status_code=400, detail="A university with this name already exists")

        for key, value in updates.items():
            if key == "name" and value is None:
                continue
            setattr(university, key, value)

        self.db.commit()
        self.db.refresh(university)
        logger.info(f"🔄 University {university_id} updated: {sorted(updates)}")
        return university

    def delete_university(self, university_id: int) -> dict:
        university = self.get_university(university_id)
        if university.courses:
            raise HTTPException(status_code=400, detail=DELETE_BLOCKED_MESSAGE)

        logo = university.logo_url
        try:
            self.db.delete(university)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Delete of university {university_id} blocked: {e.orig}")
            raise HTTPException(status_code=400, detail=DELETE_BLOCKED_MESSAGE) from e

        delete_stored_file(logo)
        logger.info(f"🗑️ University {university_id} deleted")
        return {"message": "University deleted successfully"}

    async def upload_logo(self, university_id: int, file: UploadFile) -> University:
        university = self.get_university(university_id)
        university.logo_url = await save_upload(
            file, UNIVERSITY_LOGOS_DIR, f"universityLogo_{university_id}", replace_existing=True
        )
        self.db.commit()
        self.db.refresh(university)
        return university
