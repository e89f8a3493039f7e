# blueprints/schedule/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from extensions import db
from models import Schedule
from blueprints.auth.routes import admin_required
from blueprints.core import cache as portal_cache
from blueprints.core.cache import Mutation
from blueprints.core.errors import get_or_404
from blueprints.directory.services import section_student_ids, section_teacher_ids
from . import services as svc
from .schemas import ScheduleIn

api_bp = Blueprint("schedule_api", __name__)

@api_bp.get("/admin/schedules")
@admin_required
def list_schedules():
    items = portal_cache.remember(portal_cache.SCHEDULES, portal_cache.admin_ttl(), svc.list_schedules)
    return jsonify({"ok": True, "items": items})

@api_bp.post("/admin/schedules")
@admin_required
def create_schedule():
    parsed = ScheduleIn.model_validate(request.get_json(silent=True) or {})
    res = svc.create_schedule(**parsed.model_dump())
    teachers = section_teacher_ids(res.section.id)
    if res.teacher_assignment is not None:
        teachers.add(res.teacher_assignment.teacher_id)
    students = section_student_ids(res.section.id)
    out = {
        "ok": True,
        "message": "Subject added to study load" if res.placeholder else "Schedule created",
        "schedule_id": res.schedule.id if res.schedule else None,
        "study_load_id": res.study_load.id,
        "section_assignment_id": res.room.id if res.room else None,
        "warnings": res.warnings,
    }
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SCHEDULE, teacher_id=teachers, user_id=students)
    if res.room is not None:
        portal_cache.invalidate_for(Mutation.ROOM_ASSIGNMENT, teacher_id=teachers, user_id=students)
    return jsonify(out), 201

@api_bp.delete("/admin/schedules/<int:sid>")
@admin_required
def delete_schedule(sid: int):
    s = get_or_404(Schedule, sid, "Schedule")
    ta = s.teacher_assignment
    section_id = s.section_id or (ta.section_id if ta else None)
    teachers = section_teacher_ids(section_id)
    if ta is not None:
        teachers.add(ta.teacher_id)
    students = section_student_ids(section_id)
    svc.delete_schedule(sid)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.SCHEDULE, teacher_id=teachers, user_id=students)
    return jsonify({"ok": True})
