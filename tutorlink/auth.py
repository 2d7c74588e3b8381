import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .database import get_db
from .models import Tutor, User
from .security_utils import create_jwt_token, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


def issue_access_token(user: User, role: str) -> str:
    """Sign the bearer token handed out at login/registration"""
    payload = {"sub": str(user.user_id), "email": user.email, "name": user.name, "role": role}
    return create_jwt_token(payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from a TutorLink JWT"""

    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Token carries a non-numeric subject: {payload.get('sub')!r}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    user = (
        db.query(User)
        .options(
            joinedload(User.admin_profile),
            joinedload(User.tutor_profile),
            joinedload(User.student_profile),
        )
        .filter(User.user_id == user_id)
        .first()
    )
    if not user:
        logger.warning(f"⚠️ Token for unknown user_id {user_id}")
        raise HTTPException(status_code=401, detail="User no longer exists")

    if user.status == "inactive":
        raise HTTPException(
            status_code=401, detail="Your account is inactive. Please contact an administrator."
        )

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only admin accounts through"""
    if user.role != "admin":
        logger.warning(f"⚠️ Non-admin {user.email} attempted an admin action")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def require_tutee(user: User = Depends(get_current_user)) -> User:
    """Allow only tutee (student) accounts through"""
    if user.role != "student":
        raise HTTPException(status_code=403, detail="Only tutees can perform this action")
    return user


def ensure_tutor_access(user: User, tutor: Tutor) -> None:
    """Raise 403 unless the user owns the tutor profile or is an admin"""
    if user.role == "admin":
        return
    if tutor.user_id != user.user_id:
        raise HTTPException(status_code=403, detail="You can only manage your own tutor profile")


async def require_tutor(user: User = Depends(get_current_user)) -> User:
    """Allow only accounts with a tutor profile through"""
    if user.role != "tutor":
        raise HTTPException(status_code=403, detail="Tutor access required")
    return user


async def require_tutor_owner(
    tutor_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Tutor:
    """Resolve the path's tutor and check that the caller owns it (admins pass)"""
    tutor = db.query(Tutor).filter(Tutor.tutor_id == tutor_id).first()
    if not tutor:
        raise HTTPException(status_code=404, detail="Tutor not found")
    ensure_tutor_access(user, tutor)
    return tutor
