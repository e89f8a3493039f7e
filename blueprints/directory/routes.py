from __future__ import annotations
import logging
from typing import Any

from flask import jsonify, request, url_for
from sqlalchemy import select

from . import api_bp
from .schemas import (
    BuildingIn, SectionIn, SubjectIn, TeacherAssignmentIn, UserAssignmentIn,
)
from . import services as svc
from extensions import db
from models import (
    Building, Section, SectionAssignment, Subject, TeacherAssignment, User, UserAssignment,
    AssignmentStatus, Role,
)
from blueprints.auth.routes import admin_required
from blueprints.core import cache as portal_cache
from blueprints.core.cache import Mutation
from blueprints.core.errors import Conflict, InvalidInput, get_or_404
from blueprints.study_load.services import sections_with_load

log = logging.getLogger(__name__)

# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def _payload() -> dict:
    return request.get_json(silent=True) or {}

def _section_out(s: Section) -> dict:
    return {"id": s.id, "section_name": s.section_name, "grade_level": s.grade_level,
            "school_year": s.school_year, "course": s.course, "major": s.major}

def _subject_out(s: Subject) -> dict:
    return {"id": s.id, "subject_code": s.subject_code, "subject_name": s.subject_name,
            "units": float(s.units) if s.units is not None else None, "course": s.course,
            "major": s.major, "year_level": s.year_level, "semester": s.semester}

def _building_out(b: Building) -> dict:
    return {"id": b.id, "building_name": b.building_name, "num_floors": b.num_floors,
            "rooms_per_floor": b.rooms_per_floor, "description": b.description}

def _user_assignment_out(ua: UserAssignment) -> dict:
    return {"id": ua.id, "user_id": ua.user_id, "section_id": ua.section_id,
            "year_level": ua.year_level, "semester": ua.semester,
            "student_status": ua.student_status, "status": ua.status}

# ---------- Sections ----------
@api_bp.get("/admin/sections")
@admin_required
def sections_list():
    def produce():
        students = {}
        for ua in db.session.scalars(select(UserAssignment).where(
                UserAssignment.status == AssignmentStatus.ACTIVE.value)):
            students[ua.section_id] = students.get(ua.section_id, 0) + 1
        items = []
        for s in db.session.scalars(select(Section).order_by(Section.section_name)):
            d = _section_out(s)
            d["students"] = students.get(s.id, 0)
            items.append(d)
        return items
    items = portal_cache.remember(portal_cache.SECTIONS, portal_cache.admin_ttl(), produce)
    return ok({"ok": True, "items": items})

@api_bp.post("/admin/sections")
@admin_required
def sections_create():
    parsed = SectionIn.model_validate(_payload())
    s = Section(**parsed.model_dump())
    db.session.add(s)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SECTION, teacher_id=None, user_id=None)
    return created(url_for("directory_api.sections_list"), _section_out(s))

@api_bp.put("/admin/sections/<int:id>")
@admin_required
def sections_update(id: int):
    parsed = SectionIn.model_validate(_payload())
    s = get_or_404(Section, id, "Section")
    for k, v in parsed.model_dump().items():
        setattr(s, k, v)
    teachers = svc.section_teacher_ids(s.id)
    students = svc.section_student_ids(s.id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SECTION, teacher_id=teachers, user_id=students)
    return ok({"ok": True, "item": _section_out(s)})

@api_bp.delete("/admin/sections/<int:id>")
@admin_required
def sections_delete(id: int):
    teachers, students = svc.delete_section(id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SECTION, teacher_id=teachers, user_id=students)
    portal_cache.invalidate_for(Mutation.STUDY_LOAD, user_id=students)
    return "", 204

@api_bp.get("/admin/sections-with-load")
@admin_required
def sections_with_load_list():
    items = portal_cache.remember(portal_cache.SECTIONS_WITH_LOAD, portal_cache.admin_ttl(),
                                  sections_with_load)
    return ok({"ok": True, "items": items})

# ---------- Subjects ----------
@api_bp.get("/admin/subjects")
@admin_required
def subjects_list():
    def produce():
        return [_subject_out(s) for s in db.session.scalars(select(Subject).order_by(Subject.subject_code))]
    items = portal_cache.remember(portal_cache.SUBJECTS, portal_cache.admin_ttl(), produce)
    return ok({"ok": True, "items": items})

@api_bp.post("/admin/subjects")
@admin_required
def subjects_create():
    parsed = SubjectIn.model_validate(_payload())
    s = Subject(**parsed.model_dump())
    db.session.add(s)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SUBJECT, teacher_id=None)
    return created(url_for("directory_api.subjects_list"), _subject_out(s))

@api_bp.put("/admin/subjects/<int:id>")
@admin_required
def subjects_update(id: int):
    parsed = SubjectIn.model_validate(_payload())
    s = get_or_404(Subject, id, "Subject")
    for k, v in parsed.model_dump().items():
        setattr(s, k, v)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SUBJECT, teacher_id=svc.subject_teacher_ids(s.id))
    return ok({"ok": True, "item": _subject_out(s)})

@api_bp.delete("/admin/subjects/<int:id>")
@admin_required
def subjects_delete(id: int):
    s = get_or_404(Subject, id, "Subject")
    teachers = svc.subject_teacher_ids(s.id)
    if teachers:
        raise Conflict("Subject is still assigned to teachers", {"subject_id": s.id})
    db.session.delete(s)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SUBJECT, teacher_id=teachers)
    return "", 204

# ---------- Buildings ----------
@api_bp.get("/admin/buildings")
@admin_required
def buildings_list():
    def produce():
        return [_building_out(b) for b in db.session.scalars(select(Building).order_by(Building.building_name))]
    items = portal_cache.remember(portal_cache.BUILDINGS, portal_cache.admin_ttl(), produce)
    return ok({"ok": True, "items": items})

@api_bp.post("/admin/buildings")
@admin_required
def buildings_create():
    parsed = BuildingIn.model_validate(_payload())
    b = Building(**parsed.model_dump())
    db.session.add(b)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.BUILDING, teacher_id=None, user_id=None)
    return created(url_for("directory_api.buildings_list"), _building_out(b))

@api_bp.put("/admin/buildings/<int:id>")
@admin_required
def buildings_update(id: int):
    parsed = BuildingIn.model_validate(_payload())
    b = get_or_404(Building, id, "Building")
    for k, v in parsed.model_dump().items():
        setattr(b, k, v)
    teachers, students = svc.building_audience(b.id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.BUILDING, teacher_id=teachers, user_id=students)
    return ok({"ok": True, "item": _building_out(b)})

@api_bp.delete("/admin/buildings/<int:id>")
@admin_required
def buildings_delete(id: int):
    b = get_or_404(Building, id, "Building")
    in_use = db.session.scalar(select(SectionAssignment.id).where(
        SectionAssignment.building_id == b.id).limit(1))
    if in_use is not None:
        raise Conflict("Building has room assignments", {"building_id": b.id})
    db.session.delete(b)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.BUILDING, teacher_id=None, user_id=None)
    return "", 204

# ---------- Teacher assignments ----------
@api_bp.get("/admin/teacher-assignments")
@admin_required
def teacher_assignments_list():
    q = select(TeacherAssignment).order_by(TeacherAssignment.id)
    if request.args.get("status"):
        q = q.where(TeacherAssignment.status == request.args["status"])
    items = [svc.teacher_assignment_to_dict(ta) for ta in db.session.scalars(q)]
    return ok({"ok": True, "items": items})

@api_bp.post("/admin/teacher-assignments")
@admin_required
def teacher_assignments_create():
    parsed = TeacherAssignmentIn.model_validate(_payload())
    ta = svc.create_teacher_assignment(**parsed.model_dump())
    db.session.commit()
    portal_cache.invalidate_for(Mutation.TEACHER_ASSIGNMENT, teacher_id=ta.teacher_id)
    return created(url_for("directory_api.teacher_assignments_list"), svc.teacher_assignment_to_dict(ta))

@api_bp.delete("/admin/teacher-assignments/<int:id>")
@admin_required
def teacher_assignments_delete(id: int):
    ta = svc.deactivate_teacher_assignment(id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.TEACHER_ASSIGNMENT, teacher_id=ta.teacher_id)
    return ok({"ok": True, "item": svc.teacher_assignment_to_dict(ta)})

# ---------- Student enrolments ----------
@api_bp.get("/admin/user-assignments")
@admin_required
def user_assignments_list():
    q = select(UserAssignment).order_by(UserAssignment.id)
    if request.args.get("section_id", type=int):
        q = q.where(UserAssignment.section_id == request.args.get("section_id", type=int))
    return ok({"ok": True, "items": [_user_assignment_out(ua) for ua in db.session.scalars(q)]})

def _student(user_id: int) -> User:
    u = get_or_404(User, user_id, "Student")
    if u.role != Role.STUDENT.value:
        raise InvalidInput("User is not a student", {"user_id": user_id})
    return u

def _enrolment_invalidate(user_id: int, *section_ids) -> None:
    teachers: set[int] = set()
    for sid in section_ids:
        teachers |= svc.section_teacher_ids(sid)
    portal_cache.invalidate_for(Mutation.USER_ASSIGNMENT, teacher_id=teachers, user_id=user_id)

@api_bp.post("/admin/user-assignments")
@admin_required
def user_assignments_create():
    parsed = UserAssignmentIn.model_validate(_payload())
    _student(parsed.user_id)
    section = get_or_404(Section, parsed.section_id, "Section")
    touched = [section.id]
    # one active enrolment per student
    for prev in db.session.scalars(select(UserAssignment).where(
            UserAssignment.user_id == parsed.user_id,
            UserAssignment.status == AssignmentStatus.ACTIVE.value)):
        touched.append(prev.section_id)
        prev.status = AssignmentStatus.INACTIVE.value
    ua = UserAssignment(
        user_id=parsed.user_id,
        section_id=section.id,
        year_level=parsed.year_level or section.grade_level,
        semester=parsed.semester or "1st Semester",
        student_status=parsed.student_status,
        status=AssignmentStatus.ACTIVE.value,
    )
    db.session.add(ua)
    db.session.commit()
    _enrolment_invalidate(ua.user_id, *touched)
    return created(url_for("directory_api.user_assignments_list"), _user_assignment_out(ua))

@api_bp.put("/admin/user-assignments/<int:id>")
@admin_required
def user_assignments_update(id: int):
    parsed = UserAssignmentIn.model_validate(_payload())
    ua = get_or_404(UserAssignment, id, "User assignment")
    get_or_404(Section, parsed.section_id, "Section")
    old_section = ua.section_id
    ua.section_id = parsed.section_id
    ua.year_level = parsed.year_level
    ua.semester = parsed.semester
    ua.student_status = parsed.student_status
    db.session.commit()
    _enrolment_invalidate(ua.user_id, old_section, ua.section_id)
    return ok({"ok": True, "item": _user_assignment_out(ua)})

@api_bp.delete("/admin/user-assignments/<int:id>")
@admin_required
def user_assignments_delete(id: int):
    ua = get_or_404(UserAssignment, id, "User assignment")
    user_id, section_id = ua.user_id, ua.section_id
    db.session.delete(ua)
    db.session.commit()
    _enrolment_invalidate(user_id, section_id)
    return "", 204
