# blueprints/constraints/routes.py
from flask import Blueprint, request, jsonify

from blueprints.auth.routes import admin_required
from blueprints.schedule.schemas import CheckIn
from .services import run_all_checks

api_bp = Blueprint("constraints_api", __name__)

@api_bp.post("/constraints/check")
@admin_required
def constraints_check():
    parsed = CheckIn.model_validate(request.get_json(silent=True) or {})
    ok, errors = run_all_checks(parsed.model_dump(exclude_none=True))
    norm = [{"code": e.code, "details": e.details} for e in errors]
    if ok:
        return jsonify({"ok": True, "errors": []}), 200
    if any(e["code"] == "BAD_REQUEST" for e in norm):
        return jsonify({"ok": False, "errors": norm}), 400
    return jsonify({"ok": False, "errors": norm}), 409
