"""
Error taxonomy for the attendance service.

Services raise these exceptions; the application registers a single
handler (see main.py) that turns them into JSON responses of the form
{"message": ...} (plus "field" for validation failures).
"""

from typing import Optional

UNAUTHORIZED_MESSAGE = "Unauthorized"


class RollbookError(Exception):
    """Base class for all errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(RollbookError):
    """Malformed input, rejected before the database is touched."""
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class AuthenticationError(RollbookError):
    """No valid session."""
    status_code = 401

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE):
        super().__init__(message)


class AuthorizationError(RollbookError):
    """
    Valid session, but the wrong role or no allocation for the section.

    Rendered exactly like AuthenticationError so callers cannot probe
    which sections exist.
    """
    status_code = 401

    def __init__(self, reason: str = ""):
        super().__init__(UNAUTHORIZED_MESSAGE)
        self.reason = reason


class NotFoundError(RollbookError):
    """A referenced section, grade, or student profile does not exist."""
    status_code = 404


class PersistenceError(RollbookError):
    """The database rejected a write. Earlier writes in a batch stay committed."""
    status_code = 500
