# blueprints/auth/routes.py
from __future__ import annotations
import time
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, request, jsonify, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import or_

from extensions import db, login_manager
from models import User, Role

api_bp = Blueprint("auth_api", __name__)

DEFAULT_RL_MAX = 5
DEFAULT_RL_WIN = 300  # 5 minutes
_login_attempts: dict[str, list[float]] = {}  # ip|login -> [timestamps]

@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    if not str(uid).isdecimal():
        return None
    return db.session.get(User, int(uid))

# ---------- rate limit ----------
def _rl_key(login: str) -> str:
    ip = request.headers.get("X-Forwarded-For", request.remote_addr or "0.0.0.0").split(",")[0].strip()
    return f"{ip}|{(login or '').lower()}"

def _rl_check_and_hit(login: str) -> bool:
    now = time.time()
    win = current_app.config.get("AUTH_RL_WINDOW", DEFAULT_RL_WIN)
    mx = current_app.config.get("AUTH_RL_MAX", DEFAULT_RL_MAX)
    bucket = _login_attempts.setdefault(_rl_key(login), [])
    cutoff = now - win
    while bucket and bucket[0] < cutoff:
        bucket.pop(0)
    if len(bucket) >= mx:
        return False
    bucket.append(now)
    return True

# ---------- role decorators ----------
def role_required(*roles: str) -> Callable:
    def decorator(fn: Callable):
        @wraps(fn)
        @login_required
        def wrapper(*args, **kwargs):
            if getattr(current_user, "role", None) not in roles:
                abort(403)
            return fn(*args, **kwargs)
        return wrapper
    return decorator

admin_required = role_required(Role.ADMIN.value)
# admins may look at the teacher views too
teacher_required = role_required(Role.TEACHER.value, Role.ADMIN.value)
student_required = role_required(Role.STUDENT.value)

# ---------- 401/403 ----------
@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"ok": False, "error": "unauthorized", "code": "UNAUTHORIZED"}), 401

@api_bp.app_errorhandler(403)
def _forbidden(e):
    return jsonify({"ok": False, "error": "forbidden", "code": "FORBIDDEN"}), 403

@api_bp.app_errorhandler(404)
def _not_found(e):
    return jsonify({"ok": False, "error": "not found", "code": "NOT_FOUND"}), 404

# ---------- API ----------
@api_bp.post("/auth/login")
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    login = (payload.get("email") or payload.get("username") or "").strip().lower()
    password = payload.get("password") or ""

    if not login or not password:
        return jsonify({"ok": False, "error": "missing_credentials"}), 400

    if not _rl_check_and_hit(login):
        return jsonify({"ok": False, "error": "too_many_attempts"}), 429

    user: Optional[User] = User.query.filter(
        or_(User.email == login, User.username == login)
    ).first()
    if not user or not user.check_password(password):
        return jsonify({"ok": False, "error": "invalid_credentials"}), 401

    if not user.is_active:
        return jsonify({"ok": False, "error": "inactive"}), 403

    login_user(user, remember=True)
    return jsonify({"ok": True, "user": {
        "id": user.id, "email": user.email, "full_name": user.full_name, "role": user.role,
    }})

@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})
