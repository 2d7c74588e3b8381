"""Tutor service - applications, profiles, documents and subject expertise"""

import logging
import time
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...email_service import (
    EmailDeliveryError,
    send_subject_application_status_email,
    send_tutor_application_status_email,
)
from ...models import Subject, Tutor, TutorDocument, TutorSubject
from ...security_utils import sanitize_filename, sanitize_text
from ...storage import (
    ALLOWED_DOCUMENT_TYPES,
    PROFILE_IMAGES_DIR,
    TUTOR_DOCUMENTS_DIR,
    TUTOR_GCASH_QR_DIR,
    read_upload,
    save_upload,
    stored_files,
    write_upload,
)
from ..notifications.service import notify_admins
from .repository import TutorRepository
from .schemas import (
    DocumentResponse,
    PendingSubjectApplicationResponse,
    SubjectDecision,
    TutorApplicationResponse,
    TutorProfileResponse,
    TutorProfileUpdate,
    TutorStatusUpdate,
    TutorSubjectResponse,
)

logger = logging.getLogger(__name__)


def subject_response(ts: TutorSubject) -> TutorSubjectResponse:
    return TutorSubjectResponse(
        tutor_subject_id=ts.tutor_subject_id,
        tutor_id=ts.tutor_id,
        subject_id=ts.subject_id,
        subject_name=ts.subject.subject_name,
        status=ts.status,
        admin_notes=ts.admin_notes,
        created_at=ts.created_at,
        updated_at=ts.updated_at,
        documents=[DocumentResponse.model_validate(d) for d in ts.documents],
    )


class TutorService:
    """Service layer for tutor applications and profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TutorRepository()

    def get_tutor(self, tutor_id: int) -> Tutor:
        tutor = self.repo.get_tutor(self.db, tutor_id)
        if not tutor:
            raise HTTPException(status_code=404, detail="Tutor not found")
        return tutor

    # ------------------------------------------------------------------
    # Application review
    # ------------------------------------------------------------------

    def list_applications(self) -> list[TutorApplicationResponse]:
        return [self._application_response(t) for t in self.repo.pending_applications(self.db)]

    async def update_status(self, tutor_id: int, data: TutorStatusUpdate) -> TutorApplicationResponse:
        tutor = self.get_tutor(tutor_id)
        tutor.status = data.status
        tutor.admin_notes = sanitize_text(data.adminNotes)

        approved_subjects = 0
        if data.status == "approved":
            tutor.user.is_verified = True
            # Subjects from the initial application carry no documents of their own
            for ts in tutor.subjects:
                if ts.status == "pending" and not ts.documents:
                    ts.status = "approved"
                    approved_subjects += 1

        self.db.commit()
        self.db.refresh(tutor)
        logger.info(
            f"✅ Tutor {tutor_id} application {data.status}"
            + (f" ({approved_subjects} subject(s) approved)" if approved_subjects else "")
        )

        try:
            await send_tutor_application_status_email(
                to=tutor.user.email,
                tutor_name=tutor.user.name or "Tutor",
                status=data.status,
                admin_notes=tutor.admin_notes,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to email application decision to tutor {tutor_id}: {e}")

        return self._application_response(tutor)

    def application_status(self, user_id: int) -> dict:
        tutor = self.repo.get_tutor_by_user(self.db, user_id)
        if not tutor:
            raise HTTPException(status_code=404, detail="Tutor not found")
        return {"status": tutor.status, "is_verified": bool(tutor.user.is_verified)}

    def tutor_id_for_user(self, user_id: int) -> dict:
        tutor = self.repo.get_tutor_by_user(self.db, user_id)
        if not tutor:
            raise HTTPException(status_code=404, detail="Tutor not found")
        return {"tutor_id": tutor.tutor_id}

    def submit_application(self, tutor: Tutor) -> dict:
        if not tutor.documents:
            raise HTTPException(
                status_code=400,
                detail="Please upload at least one supporting document before submitting your application",
            )
        tutor.status = "pending"
        notify_admins(self.db, f"{tutor.user.name} submitted a tutor application for review.")
        self.db.commit()
        logger.info(f"📤 Tutor {tutor.tutor_id} submitted application")
        return {"message": "Application submitted successfully", "status": tutor.status}

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self, tutor_id: int) -> TutorProfileResponse:
        tutor = self.get_tutor(tutor_id)
        return TutorProfileResponse(
            tutor_id=tutor.tutor_id,
            user_id=tutor.user_id,
            name=tutor.user.name,
            email=tutor.user.email,
            bio=tutor.bio,
            gcash_number=tutor.gcash_number,
            session_rate_per_hour=tutor.session_rate_per_hour,
            profile_image_url=tutor.user.profile_image_url,
            gcash_qr_url=tutor.gcash_qr_url,
            subjects=self.repo.approved_subject_names(self.db, tutor.tutor_id),
            status=tutor.status,
            activity_status=tutor.activity_status,
            university_name=tutor.university.name if tutor.university else None,
            course_name=tutor.course.course_name if tutor.course else None,
            year_level=tutor.year_level,
        )

    def update_profile(self, tutor: Tutor, data: TutorProfileUpdate) -> TutorProfileResponse:
        updates = data.model_dump(exclude_unset=True)
        if "bio" in updates:
            tutor.bio = sanitize_text(updates["bio"])
        if "gcash_number" in updates:
            tutor.gcash_number = updates["gcash_number"]
        if "session_rate_per_hour" in updates:
            tutor.session_rate_per_hour = updates["session_rate_per_hour"]
        self.db.commit()
        logger.info(f"✅ Tutor {tutor.tutor_id} profile updated: {sorted(updates)}")
        return self.get_profile(tutor.tutor_id)

    async def upload_profile_image(self, tutor: Tutor, file: UploadFile) -> dict:
        path = await save_upload(
            file, PROFILE_IMAGES_DIR, f"userProfile_{tutor.user_id}", replace_existing=True
        )
        tutor.user.profile_image_url = path
        self.db.commit()
        return {"message": "Profile image uploaded successfully", "profile_image_url": path}

    async def upload_gcash_qr(self, tutor: Tutor, file: UploadFile) -> dict:
        path = await save_upload(file, TUTOR_GCASH_QR_DIR, f"gcashQR_{tutor.tutor_id}", replace_existing=True)
        tutor.gcash_qr_url = path
        self.db.commit()
        return {"message": "GCash QR uploaded successfully", "gcash_qr_url": path}

    async def _store_documents(
        self,
        tutor: Tutor,
        files: list[UploadFile],
        stored: list[str],
        tutor_subject: Optional[TutorSubject] = None,
    ) -> list[TutorDocument]:
        """Check every file, then write them and queue document rows; the caller commits"""
        checked = [await read_upload(file, ALLOWED_DOCUMENT_TYPES) for file in files]

        timestamp = int(time.time() * 1000)
        documents = []
        for n, (file, (ext, contents)) in enumerate(zip(files, checked), start=1):
            path = write_upload(contents, TUTOR_DOCUMENTS_DIR, f"tutor_{tutor.tutor_id}_{n}_{timestamp}", ext)
            stored.append(path)
            document = TutorDocument(
                tutor_id=tutor.tutor_id,
                tutor_subject_id=tutor_subject.tutor_subject_id if tutor_subject else None,
                file_url=path,
                file_name=sanitize_filename(file.filename or path.rsplit("/", 1)[-1]),
                file_type=file.content_type,
            )
            self.db.add(document)
            documents.append(document)
        return documents

    async def upload_documents(self, tutor: Tutor, files: list[UploadFile]) -> list[DocumentResponse]:
        if not files:
            raise HTTPException(status_code=400, detail="No files uploaded")
        with stored_files() as stored:
            documents = await self._store_documents(tutor, files, stored)
            self.db.commit()
        logger.info(f"📤 Tutor {tutor.tutor_id} uploaded {len(documents)} document(s)")
        return [DocumentResponse.model_validate(d) for d in documents]

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    def _resolve_subject(self, tutor: Tutor, name: str) -> Subject:
        subject = self.repo.find_subject_by_name(self.db, name, tutor.course_id)
        if subject:
            return subject
        subject = Subject(subject_name=name, course_id=tutor.course_id)
        self.db.add(subject)
        self.db.flush()
        logger.info(f"🆕 Created subject '{name}' under course {tutor.course_id}")
        return subject

    def add_subjects(self, tutor: Tutor, names: list[str]) -> list[TutorSubjectResponse]:
        seen = set()
        for raw in names:
            name = sanitize_text(raw, max_length=255)
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            subject = self._resolve_subject(tutor, name)
            if self.repo.get_tutor_subject(self.db, tutor.tutor_id, subject.subject_id):
                continue
            self.db.add(TutorSubject(tutor_id=tutor.tutor_id, subject_id=subject.subject_id, status="pending"))
        self.db.commit()
        return self.list_subject_applications(tutor)

    async def apply_for_subject(
        self, tutor: Tutor, subject_name: str, files: list[UploadFile]
    ) -> TutorSubjectResponse:
        name = sanitize_text(subject_name, max_length=255)
        if not name:
            raise HTTPException(status_code=400, detail="Subject name is required")
        if not files:
            raise HTTPException(status_code=400, detail="Please attach at least one supporting document")

        subject = self._resolve_subject(tutor, name)
        tutor_subject = self.repo.get_tutor_subject(self.db, tutor.tutor_id, subject.subject_id)
        if tutor_subject and tutor_subject.status in ("pending", "approved"):
            raise HTTPException(
                status_code=400,
                detail=f"You already have a {tutor_subject.status} application for {subject.subject_name}",
            )

        if tutor_subject:
            tutor_subject.status = "pending"
            tutor_subject.admin_notes = None
        else:
            tutor_subject = TutorSubject(tutor_id=tutor.tutor_id, subject_id=subject.subject_id, status="pending")
            self.db.add(tutor_subject)
        self.db.flush()

        with stored_files() as stored:
            await self._store_documents(tutor, files, stored, tutor_subject)
            notify_admins(
                self.db,
                f"{tutor.user.name} applied to teach {subject.subject_name}.",
                subject_name=subject.subject_name,
            )
            self.db.commit()
        self.db.refresh(tutor_subject)

        logger.info(f"📤 Tutor {tutor.tutor_id} applied for subject '{subject.subject_name}'")
        return subject_response(tutor_subject)

    def list_subject_applications(self, tutor: Tutor) -> list[TutorSubjectResponse]:
        return [subject_response(ts) for ts in self.repo.tutor_subjects(self.db, tutor.tutor_id)]

    def pending_subject_applications(self) -> list[PendingSubjectApplicationResponse]:
        return [
            PendingSubjectApplicationResponse(
                **subject_response(ts).model_dump(),
                tutor_name=ts.tutor.user.name,
                tutor_email=ts.tutor.user.email,
            )
            for ts in self.repo.pending_subject_applications(self.db)
        ]

    async def decide_subject_application(
        self, tutor_subject_id: int, data: SubjectDecision
    ) -> TutorSubjectResponse:
        tutor_subject = self.repo.get_tutor_subject_by_id(self.db, tutor_subject_id)
        if not tutor_subject:
            raise HTTPException(status_code=404, detail="Subject application not found")

        tutor_subject.status = data.status
        tutor_subject.admin_notes = sanitize_text(data.admin_notes)
        self.db.commit()
        self.db.refresh(tutor_subject)

        tutor_user = tutor_subject.tutor.user
        subject_name = tutor_subject.subject.subject_name
        logger.info(f"✅ Subject application {tutor_subject_id} ({subject_name}) {data.status}")

        try:
            await send_subject_application_status_email(
                to=tutor_user.email,
                tutor_name=tutor_user.name or "Tutor",
                subject_name=subject_name,
                status=data.status,
                admin_notes=tutor_subject.admin_notes,
            )
        except EmailDeliveryError as e:
            logger.error(f"❌ Failed to email subject decision to {tutor_user.email}: {e}")

        return subject_response(tutor_subject)

    @staticmethod
    def _application_response(tutor: Tutor) -> TutorApplicationResponse:
        user = tutor.user
        return TutorApplicationResponse(
            tutor_id=tutor.tutor_id,
            user_id=tutor.user_id,
            name=user.name,
            email=user.email,
            bio=tutor.bio,
            gcash_number=tutor.gcash_number,
            session_rate_per_hour=tutor.session_rate_per_hour,
            year_level=tutor.year_level,
            status=tutor.status,
            admin_notes=tutor.admin_notes,
            university_name=tutor.university.name if tutor.university else None,
            course_name=tutor.course.course_name if tutor.course else None,
            profile_image_url=user.profile_image_url,
            created_at=user.created_at,
            documents=[DocumentResponse.model_validate(d) for d in tutor.documents],
            subjects=[subject_response(ts) for ts in tutor.subjects],
        )
