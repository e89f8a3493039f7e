# blueprints/teacher/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user

from models import Role
from blueprints.auth.routes import teacher_required
from blueprints.core import cache as portal_cache
from . import services as svc

api_bp = Blueprint("teacher_api", __name__)

def _teacher_id() -> int:
    # admins may look at any teacher through ?teacher_id=
    if current_user.role == Role.ADMIN.value and request.args.get("teacher_id", type=int):
        return request.args.get("teacher_id", type=int)
    return current_user.id

@api_bp.get("/teacher/schedule")
@teacher_required
def my_schedule():
    tid = _teacher_id()
    data = portal_cache.remember(portal_cache.TEACHER_SCHEDULE.format(teacher_id=tid),
                                 portal_cache.user_ttl(), lambda: svc.teacher_schedule(tid))
    return jsonify({"ok": True, **data})

@api_bp.get("/teacher/sections")
@teacher_required
def my_sections():
    tid = _teacher_id()
    items = portal_cache.remember(portal_cache.TEACHER_SECTIONS.format(teacher_id=tid),
                                  portal_cache.user_ttl(), lambda: svc.teacher_sections(tid))
    return jsonify({"ok": True, "items": items})

@api_bp.get("/teacher/assignments")
@teacher_required
def my_assignments():
    tid = _teacher_id()
    items = portal_cache.remember(portal_cache.TEACHER_ASSIGNMENTS.format(teacher_id=tid),
                                  portal_cache.user_ttl(), lambda: svc.teacher_assignments(tid))
    return jsonify({"ok": True, "items": items})

@api_bp.get("/teacher/students")
@teacher_required
def my_students():
    tid = _teacher_id()
    items = portal_cache.remember(portal_cache.TEACHER_STUDENTS.format(teacher_id=tid),
                                  portal_cache.user_ttl(), lambda: svc.teacher_students(tid))
    section_id = request.args.get("section_id", type=int)
    if section_id:
        items = [i for i in items if i["section_id"] == section_id]
    return jsonify({"ok": True, "items": items})
