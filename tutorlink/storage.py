"""
Local disk storage for uploaded files

Files are written under UPLOAD_DIR using canonical, convention-based names
(e.g. user_profile_images/userProfile_12.png) and referenced in the database
by their relative path.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from . import config

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

ALLOWED_DOCUMENT_TYPES = {
    **ALLOWED_IMAGE_TYPES,
    "application/pdf": ".pdf",
}

DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]

# Canonical folders, relative to UPLOAD_DIR
PROFILE_IMAGES_DIR = "user_profile_images"
ADMIN_QR_DIR = "admin_qr"
TUTOR_GCASH_QR_DIR = "tutor_gcash_qr"
TUTOR_DOCUMENTS_DIR = "tutor_documents"
PAYMENT_PROOFS_DIR = "payment_proofs"
SESSION_PROOFS_DIR = "session_proofs"
UNIVERSITY_LOGOS_DIR = "university_logos"


def upload_root() -> Path:
    return Path(config.UPLOAD_DIR)


def validate_upload(file: UploadFile, allowed_types: dict[str, str]) -> str:
    """
    Validate content type and client filename of an upload.

    Returns:
        The file extension to store the upload under
    """
    if file.content_type not in allowed_types:
        allowed = ", ".join(sorted({ext.lstrip(".").upper() for ext in allowed_types.values()}))
        raise HTTPException(status_code=400, detail=f"Invalid file type. Allowed types: {allowed}.")

    if file.filename:
        for char in DANGEROUS_FILENAME_CHARS:
            if char in file.filename:
                logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{file.filename}'")
                raise HTTPException(
                    status_code=400, detail=f"Invalid filename - contains dangerous character '{char}'"
                )
        if len(file.filename) > 255:
            raise HTTPException(status_code=400, detail="Filename too long - maximum 255 characters")

        ext = os.path.splitext(file.filename)[1].lower()
        if ext == ".jpeg":
            ext = ".jpg"
        if ext in allowed_types.values():
            return ext

    return allowed_types[file.content_type]


async def read_upload(file: UploadFile, allowed_types: Optional[dict[str, str]] = None) -> tuple[str, bytes]:
    """
    Run every upload check and return (extension, contents) without touching disk.

    Endpoints storing several files read all of them before writing any.
    """
    allowed_types = allowed_types or ALLOWED_IMAGE_TYPES
    ext = validate_upload(file, allowed_types)

    contents = await file.read()
    max_bytes = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(contents) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {config.MAX_UPLOAD_SIZE_MB}MB limit. Your file is {len(contents) / (1024 * 1024):.2f}MB.",
        )
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return ext, contents


def write_upload(contents: bytes, folder: str, basename: str, ext: str, replace_existing: bool = False) -> str:
    """Write checked contents to UPLOAD_DIR/<folder>/<basename><ext> and return the relative path"""
    target_dir = upload_root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    if replace_existing:
        for old in target_dir.glob(f"{basename}.*"):
            old.unlink(missing_ok=True)

    target = target_dir / f"{basename}{ext}"
    target.write_bytes(contents)
    return f"{folder}/{target.name}"


async def save_upload(
    file: UploadFile,
    folder: str,
    basename: str,
    allowed_types: Optional[dict[str, str]] = None,
    replace_existing: bool = False,
) -> str:
    """
    Validate and write an upload to UPLOAD_DIR/<folder>/<basename><ext>.

    Args:
        file: Incoming multipart file
        folder: Canonical folder name
        basename: Canonical filename without extension
        allowed_types: Content-type to extension map (defaults to images)
        replace_existing: Remove earlier files with the same basename but another extension

    Returns:
        The stored path relative to UPLOAD_DIR, e.g. "admin_qr/adminQR_3.png"
    """
    ext, contents = await read_upload(file, allowed_types)
    relative = write_upload(contents, folder, basename, ext, replace_existing=replace_existing)
    logger.info(f"📤 Stored upload {file.filename!r} as {relative} ({len(contents)} bytes)")
    return relative


def delete_stored_file(relative_path: Optional[str]) -> None:
    """Remove a previously stored file; missing files are ignored"""
    if not relative_path:
        return
    root = upload_root().resolve()
    path = (root / relative_path).resolve()
    if root not in path.parents:
        logger.warning(f"⚠️ Refusing to delete path outside upload dir: {relative_path}")
        return
    path.unlink(missing_ok=True)


@contextmanager
def stored_files():
    """
    Track files written inside the block and remove them if the block raises.

    Usage:
        with stored_files() as stored:
            stored.append(await save_upload(...))
            db.commit()
    """
    paths: list[str] = []
    try:
        yield paths
    except Exception:
        for path in paths:
            delete_stored_file(path)
        logger.warning(f"⚠️ Discarded {len(paths)} stored upload(s) after a failed request")
        raise
