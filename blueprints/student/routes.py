# blueprints/student/routes.py
from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user

from blueprints.auth.routes import student_required
from blueprints.core import cache as portal_cache
from blueprints.core.semesters import normalize
from blueprints.study_load.services import student_study_load
from . import services as svc

api_bp = Blueprint("student_api", __name__)

@api_bp.get("/student/assignment")
@student_required
def my_assignment():
    user = current_user._get_current_object()
    item = portal_cache.remember(portal_cache.STUDENT_ASSIGNMENT.format(user_id=user.id),
                                 portal_cache.user_ttl(), lambda: svc.student_assignment(user))
    return jsonify({"ok": True, "item": item})

@api_bp.get("/student/study-load")
@student_required
def my_study_load():
    user = current_user._get_current_object()
    requested = (request.args.get("semester") or "all").strip()
    sem_key = "all" if requested.lower() == "all" else normalize(requested).value
    key = portal_cache.STUDENT_STUDY_LOAD.format(user_id=user.id, semester=sem_key)
    data = portal_cache.remember(key, portal_cache.user_ttl(),
                                 lambda: student_study_load(user, None if sem_key == "all" else sem_key))
    return jsonify({"ok": True, **data})
