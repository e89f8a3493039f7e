# blueprints/student/services.py
from __future__ import annotations

from models import User
from blueprints.core.semesters import label, normalize
from blueprints.rooms.services import resolve_section_room
from blueprints.study_load.services import active_enrollment


def student_assignment(user: User) -> dict | None:
    """The student's current section with its room, or None when not enrolled."""
    ua = active_enrollment(user.id)
    if ua is None:
        return None
    sec = ua.section
    return {
        "id": ua.id,
        "user_id": ua.user_id,
        "section_id": ua.section_id,
        "section_name": sec.section_name if sec else None,
        "course": sec.course if sec else None,
        "major": sec.major if sec else None,
        "school_year": sec.school_year if sec else None,
        "year_level": ua.year_level,
        "semester": label(normalize(ua.semester)),
        "student_status": ua.student_status,
        "room": resolve_section_room(ua.section_id),
    }
