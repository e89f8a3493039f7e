# blueprints/study_load/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from extensions import db
from models import StudyLoad
from blueprints.auth.routes import admin_required
from blueprints.core import cache as portal_cache
from blueprints.core.cache import Mutation
from blueprints.core.errors import get_or_404
from blueprints.directory.schemas import ClearLoadIn, EnrollmentStatusIn
from blueprints.directory.services import section_student_ids
from . import services as svc

api_bp = Blueprint("study_load_api", __name__)

@api_bp.get("/admin/study-load/section/<int:section_id>")
@admin_required
def section_load(section_id: int):
    return jsonify({"ok": True, **svc.section_load_details(section_id)})

@api_bp.post("/admin/study-load/clear")
@admin_required
def clear_load():
    parsed = ClearLoadIn.model_validate(request.get_json(silent=True) or {})
    students = section_student_ids(parsed.section_id)
    removed = svc.clear_section_load(parsed.section_id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.STUDY_LOAD, user_id=students)
    return jsonify({"ok": True, "deleted": removed})

@api_bp.put("/admin/study-load/<int:entry_id>")
@admin_required
def update_entry(entry_id: int):
    parsed = EnrollmentStatusIn.model_validate(request.get_json(silent=True) or {})
    row = svc.update_enrollment_status(entry_id, parsed.enrollment_status)
    students = section_student_ids(row.section_id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.STUDY_LOAD, user_id=students)
    return jsonify({"ok": True, "item": svc.to_dict(row)})

@api_bp.delete("/admin/study-load/<int:entry_id>")
@admin_required
def delete_entry(entry_id: int):
    row = get_or_404(StudyLoad, entry_id, "Study load entry")
    students = section_student_ids(row.section_id)
    svc.delete_study_load(entry_id)
    db.session.commit()
    portal_cache.invalidate_for(Mutation.STUDY_LOAD, user_id=students)
    return jsonify({"ok": True})
