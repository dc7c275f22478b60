"""
Shared FastAPI dependencies: session identity, role guards, and the
application's live update broadcaster.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from rollbook.config import settings
from rollbook.database import get_db
from rollbook.errors import AuthenticationError
from rollbook.models.user import ROLE_TEACHER, ROLE_STUDENT
from rollbook.services.access import (
    Identity, StudentIdentity, TeacherIdentity, resolve_identity, require_role
)
from rollbook.services.broadcast import LiveUpdateBroadcaster


def get_session_token(connection: HTTPConnection) -> Optional[str]:
    """Session token from the session cookie, or an Authorization: Bearer header."""
    token = connection.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    authorization = connection.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_current_identity(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db)
) -> Identity:
    return resolve_identity(db, token)


def get_optional_identity(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db)
) -> Optional[Identity]:
    if not token:
        return None
    try:
        return resolve_identity(db, token)
    except AuthenticationError:
        return None


def require_teacher(identity: Identity = Depends(get_current_identity)) -> TeacherIdentity:
    return require_role(identity, ROLE_TEACHER)


def require_student(identity: Identity = Depends(get_current_identity)) -> StudentIdentity:
    return require_role(identity, ROLE_STUDENT)


def get_broadcaster(connection: HTTPConnection) -> LiveUpdateBroadcaster:
    return connection.app.state.broadcaster
