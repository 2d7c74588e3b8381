"""
Security Utilities
Password hashing, JWT issuance, one-time codes and input sanitization
"""

import hashlib
import logging
import re
import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, SECRET_KEY

logger = logging.getLogger(__name__)

# bcrypt with 10 rounds, matching hashes already stored in the users table
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def _legacy_prehash(password: str) -> str:
    """Old clients hashed the password with SHA-256 before it was bcrypt-hashed server side"""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(plain_password: str, hashed_password: Optional[str]) -> tuple[bool, bool]:
    """
    Verify a password against a stored bcrypt hash.

    Accounts created before the password migration hold bcrypt(sha256(password)).
    Those are still accepted and reported as needing a rehash.

    Returns:
        (is_valid, needs_rehash)
    """
    if not hashed_password:
        return False, False

    try:
        if pwd_context.verify(plain_password, hashed_password):
            return True, pwd_context.needs_update(hashed_password)
        if pwd_context.verify(_legacy_prehash(plain_password), hashed_password):
            logger.info("🔄 Legacy double-hashed password matched, scheduling rehash")
            return True, True
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
    return False, False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_numeric_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric one-time code"""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two strings in constant time"""
    if a is None or b is None:
        return False
    return secrets.compare_digest(a.encode(), b.encode())


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default JWT_EXPIRE_MINUTES)
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Strip all markup from free text (bios, notes, reasons)"""
    if value is None:
        return None
    cleaned = bleach.clean(value, tags=[], attributes={}, strip=True).strip()
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a client-supplied filename for display and storage metadata

    Removes path components and anything outside a conservative character set.
    """
    filename = filename.replace("\\", "/").split("/")[-1]
    filename = re.sub(r"[^\w\s.-]", "", filename)
    filename = filename.lstrip(".").strip()
    return filename[:255] or "file"
