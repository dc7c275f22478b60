"""
Access Guard - session identities plus role and ownership checks.

A session token is resolved once per request into a closed identity
variant: TeacherIdentity or StudentIdentity. Each carries only the
fields that make sense for its role. Route handlers then run two checks:

1. Role check: the identity must be of the role the route requires.
2. Ownership check: a teacher may only touch sections they are
   allocated to. Students never pass a student id at all; their id is
   always taken from the session.

Both failures raise AuthorizationError, which renders exactly like a
missing session so that callers cannot probe for section ids.
"""

from dataclasses import dataclass, field
from typing import ClassVar, FrozenSet, Optional, Union

from sqlalchemy.orm import Session

from rollbook.errors import AuthenticationError, AuthorizationError
from rollbook.logging_config import get_logger, log_with_context
from rollbook.models.allocation import TeacherAllocation
from rollbook.models.user import User, ROLE_TEACHER, ROLE_STUDENT
from rollbook.services.security import decode_session_token

logger = get_logger("auth")


@dataclass(frozen=True)
class TeacherIdentity:
    role: ClassVar[str] = ROLE_TEACHER

    user_id: int
    institution_id: str
    first_name: str
    last_name: str
    rank: Optional[str] = None
    section_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class StudentIdentity:
    role: ClassVar[str] = ROLE_STUDENT

    user_id: int
    institution_id: str
    first_name: str
    last_name: str


Identity = Union[TeacherIdentity, StudentIdentity]


def identity_for_user(db: Session, user: User) -> Identity:
    """Build the role-specific identity for a stored user."""
    if user.role == ROLE_TEACHER:
        section_ids = frozenset(
            row.section_id for row in db.query(TeacherAllocation.section_id).filter(
                TeacherAllocation.teacher_user_id == user.id
            )
        )
        return TeacherIdentity(
            user_id=user.id,
            institution_id=user.institution_id,
            first_name=user.first_name,
            last_name=user.last_name,
            rank=user.rank,
            section_ids=section_ids,
        )
    if user.role == ROLE_STUDENT:
        return StudentIdentity(
            user_id=user.id,
            institution_id=user.institution_id,
            first_name=user.first_name,
            last_name=user.last_name,
        )
    raise AuthenticationError()


def resolve_identity(db: Session, token: Optional[str]) -> Identity:
    """
    Turn a session token into an identity.

    Raises AuthenticationError for a missing, invalid or expired token, or
    one whose user no longer exists.
    """
    if not token:
        raise AuthenticationError()

    payload = decode_session_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError()

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        log_with_context(logger, "WARNING", "Session refers to unknown user {}".format(user_id))
        raise AuthenticationError()
    return identity_for_user(db, user)


def require_role(identity: Identity, role: str) -> Identity:
    """Role check: reject identities whose role does not match the route."""
    if identity.role != role:
        log_with_context(logger, "WARNING",
            "Role check failed: {} required, got {}".format(role, identity.role),
            context={"user_id": identity.user_id})
        raise AuthorizationError("role {} required".format(role))
    return identity


def require_section_access(identity: Identity, section_id: int) -> TeacherIdentity:
    """Ownership check: the teacher must be allocated to the section."""
    require_role(identity, ROLE_TEACHER)
    if section_id not in identity.section_ids:
        log_with_context(logger, "WARNING",
            "Teacher {} is not allocated to section {}".format(identity.user_id, section_id),
            context={"user_id": identity.user_id, "section_id": section_id})
        raise AuthorizationError("not allocated to section {}".format(section_id))
    return identity
