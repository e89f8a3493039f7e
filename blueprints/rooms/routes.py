# blueprints/rooms/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from extensions import db
from models import Section, SectionAssignment
from blueprints.auth.routes import admin_required
from blueprints.core import cache as portal_cache
from blueprints.core.audit import audit
from blueprints.core.cache import Mutation
from blueprints.core.errors import get_or_404
from blueprints.directory.schemas import SectionRoomIn
from blueprints.directory.services import section_student_ids, section_teacher_ids
from . import services as svc

api_bp = Blueprint("rooms_api", __name__)

def _invalidate(section_ids):
    teachers, students = set(), set()
    for sid in section_ids:
        teachers |= section_teacher_ids(sid)
        students |= section_student_ids(sid)
    portal_cache.invalidate_for(Mutation.ROOM_ASSIGNMENT, teacher_id=teachers, user_id=students)

@api_bp.get("/admin/section-assignments")
@admin_required
def section_assignments_list():
    history = request.args.get("history") in ("1", "true", "yes")
    return jsonify({"ok": True, "items": svc.list_section_assignments(include_history=history)})

@api_bp.post("/admin/section-assignments")
@admin_required
def section_assignments_upsert():
    parsed = SectionRoomIn.model_validate(request.get_json(silent=True) or {})
    section = get_or_404(Section, parsed.section_id, "Section")
    row = svc.upsert_section_room(section, parsed.building, parsed.room,
                                  parsed.school_year, parsed.floor)
    audit("UPSERT", "section_assignment", row.id, {"section_id": section.id,
                                                    "room": row.room_number, "floor": row.floor_number})
    db.session.commit()
    _invalidate([section.id])
    return jsonify({"ok": True, "item": svc.to_dict(row)}), 201

@api_bp.put("/admin/section-assignments/<int:aid>")
@admin_required
def section_assignments_update(aid: int):
    parsed = SectionRoomIn.model_validate(request.get_json(silent=True) or {})
    before = get_or_404(SectionAssignment, aid, "Section assignment").section_id
    row = svc.update_section_assignment(aid, building_name=parsed.building, room=parsed.room,
                                        school_year=parsed.school_year, floor=parsed.floor,
                                        section_id=parsed.section_id)
    audit("UPDATE", "section_assignment", row.id, {"section_id": row.section_id,
                                                    "room": row.room_number, "floor": row.floor_number})
    db.session.commit()
    _invalidate({before, row.section_id})
    return jsonify({"ok": True, "item": svc.to_dict(row)})

@api_bp.delete("/admin/section-assignments/<int:aid>")
@admin_required
def section_assignments_delete(aid: int):
    section_id = svc.delete_section_assignment(aid)
    audit("DELETE", "section_assignment", aid, {"section_id": section_id})
    db.session.commit()
    _invalidate([section_id])
    return jsonify({"ok": True})
