# blueprints/study_load/services.py
from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import delete, func, select

from extensions import db
from models import (
    Section, StudyLoad, Subject, TeacherAssignment, User, UserAssignment, AssignmentStatus,
)
from blueprints.core.errors import get_or_404
from blueprints.core.semesters import label, normalize, semester_filter
from blueprints.rooms.services import resolve_school_year

log = logging.getLogger(__name__)

ENROLLMENT_STATUSES = ("Enrolled", "Pending", "Dropped", "Completed")


def resolve_semester_label(subject: Subject, teacher_assignment: TeacherAssignment | None = None,
                           semester_hint: str | None = None) -> str:
    raw = (semester_hint
           or (teacher_assignment.semester if teacher_assignment is not None else None)
           or subject.semester
           or "1st")
    return label(normalize(raw))


def ensure_study_load(section: Section, subject: Subject,
                      teacher_assignment: TeacherAssignment | None = None,
                      semester_hint: str | None = None) -> StudyLoad:
    """Return the (section, subject, semester) row, creating it on first use.

    An existing row is returned as stored: the teacher name is the one
    captured when the row was created.
    """
    # keyed by the display label, not the canonical tag
    sem_label = resolve_semester_label(subject, teacher_assignment, semester_hint)
    existing = db.session.scalar(
        select(StudyLoad).where(StudyLoad.section_id == section.id,
                                StudyLoad.subject_id == subject.id,
                                StudyLoad.semester == sem_label)
    )
    if existing is not None:
        return existing

    teacher_name = None
    if teacher_assignment is not None and teacher_assignment.teacher is not None:
        teacher_name = teacher_assignment.teacher.full_name

    row = StudyLoad(
        section_id=section.id,
        subject_id=subject.id,
        semester=sem_label,
        school_year=resolve_school_year(section),
        course=section.course,
        major=section.major,
        year_level=section.grade_level,
        section=section.section_name,
        subject_code=subject.subject_code,
        subject_title=subject.subject_name,
        units=subject.units,
        teacher=teacher_name,
    )
    db.session.add(row)
    db.session.flush()
    log.info("study load synthesized",
             extra={"event": "study_load_synthesized", "section_id": section.id})
    return row


def update_enrollment_status(entry_id: int, status: str) -> StudyLoad:
    row = get_or_404(StudyLoad, entry_id, "Study load entry")
    row.enrollment_status = status
    db.session.flush()
    return row


def delete_study_load(entry_id: int) -> int:
    row = get_or_404(StudyLoad, entry_id, "Study load entry")
    section_id = row.section_id
    db.session.delete(row)
    db.session.flush()
    return section_id


def clear_section_load(section_id: int) -> int:
    get_or_404(Section, section_id, "Section")
    res = db.session.execute(delete(StudyLoad).where(StudyLoad.section_id == section_id))
    return res.rowcount or 0


def to_dict(row: StudyLoad) -> dict:
    return {
        "id": row.id,
        "section_id": row.section_id,
        "subject_id": row.subject_id,
        "semester": label(normalize(row.semester)),
        "school_year": row.school_year,
        "course": row.course,
        "major": row.major,
        "year_level": row.year_level,
        "section": row.section,
        "subject_code": row.subject_code,
        "subject_title": row.subject_title,
        "units": float(row.units) if row.units is not None else None,
        "teacher": row.teacher or "TBA",
        "enrollment_status": row.enrollment_status,
    }


def section_load_details(section_id: int) -> dict:
    section = get_or_404(Section, section_id, "Section")
    rows = db.session.scalars(
        select(StudyLoad).where(StudyLoad.section_id == section.id)
        .order_by(StudyLoad.semester, StudyLoad.subject_code)
    ).all()
    items = [to_dict(r) for r in rows]
    return {
        "section": {"id": section.id, "section_name": section.section_name,
                    "grade_level": section.grade_level, "course": section.course,
                    "major": section.major, "school_year": section.school_year},
        "items": items,
        "total_units": sum(i["units"] or 0 for i in items),
    }


def sections_with_load() -> list[dict]:
    counts = dict(db.session.execute(
        select(StudyLoad.section_id, func.count(StudyLoad.id)).group_by(StudyLoad.section_id)
    ).all())
    out = []
    for s in db.session.scalars(select(Section).order_by(Section.section_name)):
        n = int(counts.get(s.id, 0))
        out.append({
            "id": s.id,
            "section_name": s.section_name,
            "grade_level": s.grade_level,
            "course": s.course,
            "major": s.major,
            "school_year": s.school_year,
            "load_count": n,
            "status": "Assigned" if n else "Not Assigned",
        })
    return out


def active_enrollment(user_id: int) -> Optional[UserAssignment]:
    return db.session.scalar(
        select(UserAssignment)
        .where(UserAssignment.user_id == user_id,
               UserAssignment.status == AssignmentStatus.ACTIVE.value)
        .order_by(UserAssignment.id.desc())
        .limit(1)
    )


def student_study_load(user: User, semester: str | None = None) -> dict:
    """The study load of the student's current section.

    Rows stored without a semester are listed under every semester.
    """
    ua = active_enrollment(user.id)
    if ua is None or ua.section_id is None:
        return {"section": None, "semester": semester or "all", "items": [], "total_units": 0}
    rows = db.session.scalars(
        select(StudyLoad)
        .where(StudyLoad.section_id == ua.section_id,
               semester_filter(StudyLoad.semester, semester))
        .order_by(StudyLoad.subject_code)
    ).all()
    items = [to_dict(r) for r in rows]
    return {
        "section": ua.section.section_name if ua.section else None,
        "semester": semester or "all",
        "items": items,
        "total_units": sum(i["units"] or 0 for i in items),
    }
