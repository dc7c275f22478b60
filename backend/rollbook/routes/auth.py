"""
Authentication routes - login, logout and current user.

A successful login sets an HTTP-only session cookie holding a signed
token. Failed logins tell the caller whether the ID or the password was
wrong.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from rollbook.config import settings
from rollbook.database import get_db
from rollbook.errors import AuthenticationError
from rollbook.logging_config import get_logger, log_with_context
from rollbook.models.user import User
from rollbook.routes.deps import get_optional_identity
from rollbook.services.access import Identity, identity_for_user
from rollbook.services.security import verify_password, create_session_token

router = APIRouter()
logger = get_logger("auth")


# ── Pydantic schemas ─────────────────────────────────────────

class LoginRequest(BaseModel):
    """Schema for the login form."""
    model_config = ConfigDict(populate_by_name=True)

    institution_id: str = Field(..., alias="institutionId", min_length=1,
                                description="Institution ID, e.g. TCH-1001")
    password: str = Field(..., min_length=1)


def serialize_identity(identity: Identity) -> dict:
    """Public user info for login/me responses."""
    return {
        "id": identity.user_id,
        "institutionId": identity.institution_id,
        "role": identity.role,
        "firstName": identity.first_name,
        "lastName": identity.last_name,
        "rank": getattr(identity, "rank", None)
    }


@router.post("/api/auth/login")
def login(form: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Check credentials and start a session."""
    user = db.query(User).filter(User.institution_id == form.institution_id).first()
    if not user:
        log_with_context(logger, "WARNING", "Login failed: unknown ID",
                         extra_data={"institution_id": form.institution_id})
        raise AuthenticationError("Invalid ID")
    if not verify_password(form.password, user.password_hash):
        log_with_context(logger, "WARNING", "Login failed: wrong password",
                         context={"user_id": user.id})
        raise AuthenticationError("Invalid password")

    identity = identity_for_user(db, user)
    token = create_session_token(user.id, user.role)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax"
    )

    log_with_context(logger, "INFO", "User logged in",
                     context={"user_id": user.id}, extra_data={"role": user.role})
    return serialize_identity(identity)


@router.post("/api/auth/logout")
def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out successfully"}


@router.get("/api/auth/me")
def me(identity: Optional[Identity] = Depends(get_optional_identity)):
    """Current user, or null when there is no valid session."""
    if identity is None:
        return None
    return serialize_identity(identity)
