# blueprints/directory/services.py
from __future__ import annotations
import logging

from sqlalchemy import delete, select, update

from extensions import db
from models import (
    Schedule, Section, SectionAssignment, StudyLoad, Subject, TeacherAssignment,
    User, UserAssignment, AssignmentStatus, RoomAssignmentStatus, Role,
)
from blueprints.core.errors import Conflict, InvalidInput, get_or_404
from blueprints.core.semesters import legacy_code, normalize

log = logging.getLogger(__name__)

ACTIVE = AssignmentStatus.ACTIVE.value
INACTIVE = AssignmentStatus.INACTIVE.value


# ---------- who sees a section ----------
def section_teacher_ids(section_id: int | None) -> set[int]:
    """Teachers whose cached views show this section.

    Floating assignments count: their teacher can be scheduled into any section.
    """
    if section_id is None:
        return set()
    q = select(TeacherAssignment.teacher_id).where(
        TeacherAssignment.status == ACTIVE,
        (TeacherAssignment.section_id == section_id) | (TeacherAssignment.section_id.is_(None)),
    )
    return set(db.session.scalars(q))


def section_student_ids(section_id: int | None) -> set[int]:
    if section_id is None:
        return set()
    q = select(UserAssignment.user_id).where(UserAssignment.section_id == section_id,
                                             UserAssignment.status == ACTIVE)
    return set(db.session.scalars(q))


def subject_teacher_ids(subject_id: int) -> set[int]:
    q = select(TeacherAssignment.teacher_id).where(TeacherAssignment.subject_id == subject_id)
    return set(db.session.scalars(q))


# ---------- sections ----------
def delete_section(section_id: int) -> tuple[set[int], set[int]]:
    """Delete a section with no active enrolments. Returns (teacher ids, student ids) it touched."""
    section = get_or_404(Section, section_id, "Section")
    students = section_student_ids(section.id)
    if students:
        raise Conflict("Section has active student enrolments",
                       {"section_id": section.id, "students": len(students)})
    teachers = section_teacher_ids(section.id)
    room_ids = select(SectionAssignment.id).where(SectionAssignment.section_id == section.id)
    db.session.execute(delete(Schedule).where(Schedule.section_id == section.id))
    db.session.execute(update(Schedule).where(Schedule.room_id.in_(room_ids)).values(room_id=None))
    db.session.execute(delete(SectionAssignment).where(SectionAssignment.section_id == section.id))
    db.session.execute(delete(StudyLoad).where(StudyLoad.section_id == section.id))
    db.session.execute(update(TeacherAssignment).where(TeacherAssignment.section_id == section.id)
                       .values(section_id=None, status=INACTIVE))
    db.session.execute(update(UserAssignment).where(UserAssignment.section_id == section.id)
                       .values(section_id=None, status=INACTIVE))
    db.session.delete(section)
    db.session.flush()
    return teachers, students


# ---------- teacher assignments ----------
def create_teacher_assignment(teacher_id: int, subject_id: int, section_id: int | None = None,
                              school_year: str | None = None, semester: str | None = None) -> TeacherAssignment:
    teacher = get_or_404(User, teacher_id, "Teacher")
    if teacher.role != Role.TEACHER.value:
        raise InvalidInput("User is not a teacher", {"teacher_id": teacher_id})
    subject = get_or_404(Subject, subject_id, "Subject")
    if section_id is not None:
        get_or_404(Section, section_id, "Section")

    dup = db.session.scalar(select(TeacherAssignment).where(
        TeacherAssignment.teacher_id == teacher.id,
        TeacherAssignment.subject_id == subject.id,
        TeacherAssignment.status == ACTIVE,
    ))
    if dup is not None:
        raise Conflict("Teacher already has an active assignment for this subject",
                       {"teacher_assignment_id": dup.id})

    ta = TeacherAssignment(
        teacher_id=teacher.id,
        subject_id=subject.id,
        section_id=section_id,
        school_year=school_year,
        semester=legacy_code(normalize(semester or subject.semester)),
        status=ACTIVE,
    )
    db.session.add(ta)
    db.session.flush()
    log.info("teacher assigned", extra={"event": "teacher_assignment_created", "section_id": section_id})
    return ta


def deactivate_teacher_assignment(assignment_id: int) -> TeacherAssignment:
    ta = get_or_404(TeacherAssignment, assignment_id, "Teacher assignment")
    ta.status = INACTIVE
    db.session.flush()
    return ta


def teacher_assignment_to_dict(ta: TeacherAssignment) -> dict:
    return {
        "id": ta.id,
        "teacher_id": ta.teacher_id,
        "teacher_name": ta.teacher.full_name if ta.teacher else None,
        "subject_id": ta.subject_id,
        "subject_code": ta.subject.subject_code if ta.subject else None,
        "subject_name": ta.subject.subject_name if ta.subject else None,
        "section_id": ta.section_id,
        "section_name": ta.section.section_name if ta.section else None,
        "school_year": ta.school_year,
        "semester": ta.semester,
        "status": ta.status,
    }


def building_audience(building_id: int) -> tuple[set[int], set[int]]:
    """(teacher ids, student ids) of the sections holding a room in the building."""
    teachers: set[int] = set()
    students: set[int] = set()
    q = select(SectionAssignment.section_id).where(
        SectionAssignment.building_id == building_id,
        SectionAssignment.status == RoomAssignmentStatus.ACTIVE.value,
    )
    for section_id in set(db.session.scalars(q)):
        teachers |= section_teacher_ids(section_id)
        students |= section_student_ids(section_id)
    return teachers, students
