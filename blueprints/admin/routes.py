from __future__ import annotations
from flask import Blueprint, jsonify, request
from sqlalchemy import select

from extensions import db
from models import AuditLog
from blueprints.auth.routes import admin_required
from blueprints.core import cache as portal_cache
from . import services as svc

api_bp = Blueprint("admin_api", __name__)

@api_bp.get("/admin/dashboard/stats")
@admin_required
def dashboard_stats():
    data = portal_cache.remember(portal_cache.DASHBOARD_STATS, portal_cache.admin_ttl(), svc.dashboard_stats)
    return jsonify({"ok": True, "stats": data})

@api_bp.get("/admin/evaluations/lowest-rated")
@admin_required
def lowest_rated():
    items = portal_cache.remember(portal_cache.LOWEST_RATED, portal_cache.admin_ttl(),
                                  svc.lowest_rated_teachers)
    return jsonify({"ok": True, "items": items})

@api_bp.get("/admin/audit-logs")
@admin_required
def audit_logs():
    limit = min(200, request.args.get("limit", 50, type=int))
    q = db.session.scalars(select(AuditLog).order_by(AuditLog.id.desc()).limit(limit)).all()
    return jsonify({"ok": True, "items": [
        {"id": a.id, "user_id": a.user_id, "action": a.action, "entity": a.entity,
         "entity_id": a.entity_id, "payload": a.payload, "created_at": a.created_at.isoformat()}
        for a in q
    ]})
