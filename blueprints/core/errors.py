from __future__ import annotations

from extensions import db


class PortalError(Exception):
    """Base of the errors services raise; rendered by the core blueprint."""
    status = 400
    code = "PORTAL_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.message, "code": self.code, "details": self.details}


class NotFound(PortalError):
    status = 404
    code = "NOT_FOUND"


class Conflict(PortalError):
    status = 409
    code = "CONFLICT"


class InvalidInput(PortalError):
    status = 422
    code = "INVALID_INPUT"


class NoTeacherAssigned(PortalError):
    status = 400
    code = "NO_TEACHER_ASSIGNED"


def get_or_404(model, ident, what: str | None = None):
    obj = db.session.get(model, ident) if ident is not None else None
    if obj is None:
        name = what or model.__name__
        raise NotFound(f"{name} not found", {"id": ident})
    return obj
