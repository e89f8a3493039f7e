# blueprints/teacher/services.py
from __future__ import annotations
from collections import defaultdict
from typing import Dict, List

from sqlalchemy import func, select

from extensions import db
from models import (
    Schedule, Section, TeacherAssignment, User, UserAssignment, AssignmentStatus, Role,
)
from blueprints.core.semesters import label, normalize
from blueprints.directory.services import teacher_assignment_to_dict
from blueprints.schedule.services import schedule_to_dict

ACTIVE = AssignmentStatus.ACTIVE.value
DAY_ORDER = {d: i for i, d in enumerate(
    ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"))}


def _meetings(teacher_id: int) -> List[Schedule]:
    q = (select(Schedule)
         .join(TeacherAssignment, TeacherAssignment.id == Schedule.teacher_assignment_id)
         .where(TeacherAssignment.teacher_id == teacher_id, TeacherAssignment.status == ACTIVE))
    rows = list(db.session.scalars(q))
    rows.sort(key=lambda s: (DAY_ORDER.get(s.day_of_week, 7), s.start_time))
    return rows


def teacher_schedule(teacher_id: int) -> Dict:
    lessons = [schedule_to_dict(s) for s in _meetings(teacher_id)]
    by_day: Dict[str, list] = defaultdict(list)
    for item in lessons:
        by_day[item["day_of_week"]].append(item)
    return {
        "teacher_id": teacher_id,
        "counts": {"meetings": len(lessons), "days": len(by_day)},
        "days": [{"day_of_week": d, "lessons": by_day[d]}
                 for d in sorted(by_day, key=lambda d: DAY_ORDER.get(d, 7))],
    }


def _section_subjects(teacher_id: int) -> Dict[int, set]:
    subjects: Dict[int, set] = defaultdict(set)
    for ta in db.session.scalars(select(TeacherAssignment).where(
            TeacherAssignment.teacher_id == teacher_id, TeacherAssignment.status == ACTIVE,
            TeacherAssignment.section_id.is_not(None))):
        subjects[ta.section_id].add(ta.subject.subject_code)
    for s in _meetings(teacher_id):
        if s.section_id is not None:
            subjects[s.section_id].add(s.teacher_assignment.subject.subject_code)
    return subjects


def teacher_sections(teacher_id: int) -> List[Dict]:
    """Sections the teacher is scoped to or meets, with their subjects."""
    subjects = _section_subjects(teacher_id)
    if not subjects:
        return []

    students = dict(db.session.execute(
        select(UserAssignment.section_id, func.count(UserAssignment.id))
        .where(UserAssignment.section_id.in_(list(subjects)), UserAssignment.status == ACTIVE)
        .group_by(UserAssignment.section_id)
    ).all())
    out = []
    for sec in db.session.scalars(select(Section).where(Section.id.in_(list(subjects)))
                                  .order_by(Section.section_name)):
        out.append({
            "id": sec.id,
            "section_name": sec.section_name,
            "grade_level": sec.grade_level,
            "course": sec.course,
            "school_year": sec.school_year,
            "subjects": sorted(subjects[sec.id]),
            "students": int(students.get(sec.id, 0)),
        })
    return out


def teacher_students(teacher_id: int) -> List[Dict]:
    sections = list(_section_subjects(teacher_id))
    if not sections:
        return []
    rows = db.session.execute(
        select(User.id, User.full_name, User.username, Section.id, Section.section_name)
        .join(UserAssignment, UserAssignment.user_id == User.id)
        .join(Section, Section.id == UserAssignment.section_id)
        .where(UserAssignment.section_id.in_(sections), UserAssignment.status == ACTIVE,
               User.role == Role.STUDENT.value)
        .order_by(Section.section_name, User.full_name)
    ).all()
    return [{"id": uid, "full_name": name, "username": username,
             "section_id": sid, "section_name": sname}
            for uid, name, username, sid, sname in rows]


def teacher_assignments(teacher_id: int) -> List[Dict]:
    rows = db.session.scalars(
        select(TeacherAssignment)
        .where(TeacherAssignment.teacher_id == teacher_id, TeacherAssignment.status == ACTIVE)
        .order_by(TeacherAssignment.id)
    )
    out = []
    for ta in rows:
        d = teacher_assignment_to_dict(ta)
        d["semester_label"] = label(normalize(ta.semester))
        out.append(d)
    return out
