from __future__ import annotations

from flask_login import current_user

from extensions import db
from models import AuditLog


def audit(action: str, entity: str, entity_id: int | None, payload: dict | None = None):
    """Queue an audit row in the current unit of work; it commits with it."""
    db.session.add(AuditLog(
        user_id=getattr(current_user, "id", None),
        action=action, entity=entity, entity_id=entity_id, payload=payload or {}
    ))
