# blueprints/schedule/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select

from extensions import db
from models import (
    Schedule, Section, SectionAssignment, StudyLoad, Subject, TeacherAssignment,
)
from blueprints.core.audit import audit
from blueprints.core.errors import Conflict, get_or_404
from blueprints.constraints.services import (
    check_teacher_overlap, is_placeholder, lock_teacher, parse_day, parse_interval,
    find_teacher_assignment, resolve_teacher_assignment,
)
from blueprints.rooms import services as rooms
from blueprints.study_load.services import ensure_study_load

log = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    """What a create call did, so the route can answer and invalidate."""
    section: Section
    subject: Subject
    study_load: StudyLoad
    teacher_assignment: Optional[TeacherAssignment] = None
    schedule: Optional[Schedule] = None
    room: Optional[SectionAssignment] = None
    placeholder: bool = False
    warnings: list[str] = field(default_factory=list)


def _wants_room(building: str | None, room) -> bool:
    return bool((building or "").strip()) and room is not None and str(room).strip() != ""


def create_schedule(*, section_id: int, subject_id: int, day_of_week: str | None,
                    start_time, end_time, building: str | None = None, room=None,
                    floor=None, school_year: str | None = None,
                    semester: str | None = None) -> ScheduleResult:
    """Admit a class meeting and materialise the study load behind it.

    ``00:00``-``00:00`` registers the subject for the section without a
    meeting: no overlap check and no schedule row. Everything runs in the
    caller's transaction; nothing is committed here.
    """
    section = get_or_404(Section, section_id, "Section")
    subject = get_or_404(Subject, subject_id, "Subject")

    if is_placeholder(start_time, end_time):
        ta = find_teacher_assignment(subject, section)
        room_row = None
        if _wants_room(building, room):
            room_row = rooms.upsert_section_room(section, building, room, school_year, floor)
        load = ensure_study_load(section, subject, ta, semester)
        audit("CREATE", "study_load", load.id, {"section_id": section.id, "subject_id": subject.id,
                                                 "placeholder": True})
        result = ScheduleResult(section=section, subject=subject, study_load=load,
                                teacher_assignment=ta, room=room_row, placeholder=True)
        if ta is None:
            result.warnings.append("No teacher assigned yet")
        return result

    day = parse_day(day_of_week)
    start, end = parse_interval(start_time, end_time)

    if _wants_room(building, room):
        room_row = rooms.upsert_section_room(section, building, room, school_year, floor)
    else:
        room_row = rooms.current_assignment(section.id)

    # a failure from here on rolls back the room change with the rest
    ta = resolve_teacher_assignment(subject, section)
    # held to commit so a parallel booking for this teacher sees our row
    lock_teacher(ta.teacher_id)
    errors = check_teacher_overlap(ta.teacher_id, day, start, end)
    if errors:
        log.warning("teacher schedule conflict",
                    extra={"event": "schedule_conflict", "section_id": section.id})
        raise Conflict("Schedule conflict detected for the teacher",
                       {"errors": [{"code": e.code, **e.details} for e in errors]})

    sched = Schedule(
        teacher_assignment_id=ta.id,
        section_id=section.id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        room_id=room_row.id if room_row is not None else None,
    )
    db.session.add(sched)
    db.session.flush()

    load = ensure_study_load(section, subject, ta, semester)
    audit("CREATE", "schedule", sched.id, {
        "section_id": section.id, "subject_id": subject.id, "teacher_assignment_id": ta.id,
        "day_of_week": day, "start_time": start.isoformat(), "end_time": end.isoformat(),
    })
    log.info("schedule created", extra={"event": "schedule_created",
                                        "schedule_id": sched.id, "section_id": section.id})
    return ScheduleResult(section=section, subject=subject, study_load=load,
                          teacher_assignment=ta, schedule=sched, room=room_row)


def delete_schedule(schedule_id: int) -> Schedule:
    s = get_or_404(Schedule, schedule_id, "Schedule")
    audit("DELETE", "schedule", s.id, {"teacher_assignment_id": s.teacher_assignment_id})
    db.session.delete(s)
    db.session.flush()
    return s


def schedule_to_dict(s: Schedule) -> dict:
    ta = s.teacher_assignment
    section_id = s.section_id or (ta.section_id if ta is not None else None)
    return {
        "id": s.id,
        "teacher_assignment_id": s.teacher_assignment_id,
        "teacher_id": ta.teacher_id if ta else None,
        "teacher_name": ta.teacher.full_name if ta and ta.teacher else None,
        "subject_id": ta.subject_id if ta else None,
        "subject_code": ta.subject.subject_code if ta and ta.subject else None,
        "subject_name": ta.subject.subject_name if ta and ta.subject else None,
        "section_id": section_id,
        "section_name": s.section.section_name if s.section else (
            ta.section.section_name if ta and ta.section else None),
        "day_of_week": s.day_of_week,
        "start_time": s.start_time.strftime("%H:%M"),
        "end_time": s.end_time.strftime("%H:%M"),
        "room_id": s.room_id,
        **rooms.resolve_section_room(section_id, s.room_id),
    }


def list_schedules() -> list[dict]:
    q = (select(Schedule)
         .order_by(Schedule.day_of_week, Schedule.start_time, Schedule.id))
    return [schedule_to_dict(s) for s in db.session.scalars(q)]
