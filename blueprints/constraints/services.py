# blueprints/constraints/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import time

from sqlalchemy import select

from extensions import db
from models import Schedule, Section, Subject, TeacherAssignment, User, AssignmentStatus
from blueprints.core.errors import InvalidInput, NoTeacherAssigned, get_or_404

log = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
PLACEHOLDER = time(0, 0)


@dataclass
class CheckError:
    code: str
    details: dict


# ---------- parsing ----------
def parse_time(value, field: str = "time") -> time:
    """``HH:MM`` or ``HH:MM:SS``."""
    if isinstance(value, time):
        return value
    raw = (str(value) if value is not None else "").strip()
    parts = raw.split(":")
    if len(parts) not in (2, 3) or not all(p.isdecimal() for p in parts):
        raise InvalidInput(f"Invalid {field}", {"field": field, "value": raw})
    h, m = int(parts[0]), int(parts[1])
    s = int(parts[2]) if len(parts) == 3 else 0
    if not (0 <= h < 24 and 0 <= m < 60 and 0 <= s < 60):
        raise InvalidInput(f"Invalid {field}", {"field": field, "value": raw})
    return time(h, m, s)


def parse_day(value) -> str:
    raw = (str(value) if value is not None else "").strip().lower()
    for day in WEEKDAYS:
        if raw == day.lower():
            return day
    raise InvalidInput("Invalid day of week", {"field": "day_of_week", "value": value})


def is_placeholder(start, end) -> bool:
    """``00:00``-``00:00``: take the subject without a fixed meeting time."""
    try:
        return parse_time(start, "start_time") == PLACEHOLDER and parse_time(end, "end_time") == PLACEHOLDER
    except InvalidInput:
        return False


def parse_interval(start, end) -> tuple[time, time]:
    s = parse_time(start, "start_time")
    e = parse_time(end, "end_time")
    if e <= s:
        raise InvalidInput("End time must be after start time",
                           {"start_time": s.isoformat(), "end_time": e.isoformat()})
    return s, e


# ---------- overlap ----------
def intervals_overlap(s1: time, e1: time, s2: time, e2: time) -> bool:
    # half-open: touching ends do not overlap
    return s1 < e2 and s2 < e1


def teacher_meetings(teacher_id: int, day_of_week: str, exclude_schedule_id: int | None = None) -> list[Schedule]:
    """Meetings of ``teacher_id`` on that day, under active assignments only."""
    q = (select(Schedule)
         .join(TeacherAssignment, TeacherAssignment.id == Schedule.teacher_assignment_id)
         .where(TeacherAssignment.teacher_id == teacher_id,
                TeacherAssignment.status == AssignmentStatus.ACTIVE.value,
                Schedule.day_of_week == day_of_week))
    if exclude_schedule_id is not None:
        q = q.where(Schedule.id != exclude_schedule_id)
    return list(db.session.scalars(q))


def conflicting_meetings(teacher_id: int, day_of_week: str, start: time, end: time,
                         exclude_schedule_id: int | None = None) -> list[Schedule]:
    return [m for m in teacher_meetings(teacher_id, day_of_week, exclude_schedule_id)
            if intervals_overlap(start, end, m.start_time, m.end_time)]


def has_conflict(teacher_id: int, day_of_week: str, start: time, end: time,
                 exclude_schedule_id: int | None = None) -> bool:
    return bool(conflicting_meetings(teacher_id, day_of_week, start, end, exclude_schedule_id))


def teacher_lock(teacher_id: int):
    return select(User.id).where(User.id == teacher_id).with_for_update()


def lock_teacher(teacher_id: int) -> None:
    """Serialise writers booking the same teacher until the transaction ends.

    Row lock on backends that have one; SQLite already admits a single writer.
    """
    db.session.execute(teacher_lock(teacher_id))


def check_teacher_overlap(teacher_id: int, day_of_week: str, start: time, end: time,
                          exclude_schedule_id: int | None = None) -> list[CheckError]:
    return [
        CheckError(code="TEACHER_BUSY", details={
            "schedule_id": m.id,
            "teacher_id": teacher_id,
            "day_of_week": day_of_week,
            "start_time": m.start_time.strftime("%H:%M"),
            "end_time": m.end_time.strftime("%H:%M"),
        })
        for m in conflicting_meetings(teacher_id, day_of_week, start, end, exclude_schedule_id)
    ]


# ---------- teacher resolution ----------
def find_teacher_assignment(subject: Subject, section: Section | None) -> TeacherAssignment | None:
    """Section-scoped active assignment first, else a floating one for the subject."""
    base = (select(TeacherAssignment)
            .where(TeacherAssignment.subject_id == subject.id,
                   TeacherAssignment.status == AssignmentStatus.ACTIVE.value)
            .order_by(TeacherAssignment.id.desc())
            .limit(1))
    if section is not None:
        scoped = db.session.scalar(base.where(TeacherAssignment.section_id == section.id))
        if scoped is not None:
            return scoped
    return db.session.scalar(base)


def resolve_teacher_assignment(subject: Subject, section: Section | None) -> TeacherAssignment:
    ta = find_teacher_assignment(subject, section)
    if ta is None:
        raise NoTeacherAssigned("No teacher assigned to this subject",
                                {"subject_id": subject.id,
                                 "section_id": section.id if section else None})
    return ta


def run_all_checks(payload: dict) -> tuple[bool, list[CheckError]]:
    """Dry run of the checks a new meeting goes through."""
    required = ["day_of_week", "start_time", "end_time"]
    missing = [k for k in required if not payload.get(k)]
    if "teacher_id" not in payload and "subject_id" not in payload:
        missing.append("teacher_id")
    if missing:
        return False, [CheckError(code="BAD_REQUEST", details={"missing": missing})]

    day = parse_day(payload["day_of_week"])
    if is_placeholder(payload["start_time"], payload["end_time"]):
        return True, []
    start, end = parse_interval(payload["start_time"], payload["end_time"])

    teacher_id = payload.get("teacher_id")
    if teacher_id is None:
        subject = get_or_404(Subject, payload.get("subject_id"), "Subject")
        section = db.session.get(Section, payload["section_id"]) if payload.get("section_id") else None
        teacher_id = resolve_teacher_assignment(subject, section).teacher_id

    errors = check_teacher_overlap(int(teacher_id), day, start, end,
                                   exclude_schedule_id=payload.get("exclude_schedule_id"))
    return not errors, errors
