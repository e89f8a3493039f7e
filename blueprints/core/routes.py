from __future__ import annotations
import json, logging
from datetime import datetime

from flask import g, jsonify, request
from flask_wtf.csrf import generate_csrf
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.wrappers.response import Response

from extensions import csrf, db
from . import bp, api_bp
from .errors import PortalError

log = logging.getLogger(__name__)

LOG_EXTRAS = ("event", "path", "method", "status", "duration_ms",
              "section_id", "schedule_id", "cache_keys")

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_EXTRAS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _setup_structured_logging(app):
    # on the root logger so service modules' loggers share the format
    logger = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

def pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors()
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
    return errs

# ---------- errors ----------
@bp.app_errorhandler(PortalError)
def _portal_error(err: PortalError):
    db.session.rollback()
    if err.status == 409:
        log.warning(err.message, extra={"event": "conflict", "path": request.path})
    return jsonify(err.to_dict()), err.status

@bp.app_errorhandler(ValidationError)
def _validation_error(err: ValidationError):
    db.session.rollback()
    return jsonify({"ok": False, "error": "Invalid payload", "code": "VALIDATION_ERROR",
                    "details": pydantic_errors_safe(err)}), 422

@bp.app_errorhandler(IntegrityError)
def _integrity_error(err: IntegrityError):
    db.session.rollback()
    log.warning("integrity error", extra={"event": "conflict", "path": request.path})
    return jsonify({"ok": False, "error": "Unique constraint violation",
                    "code": "UNIQUE_CONSTRAINT", "details": {}}), 409

# ---------- request log ----------
@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()

@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((datetime.utcnow() - start).total_seconds() * 1000) if start else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    logging.getLogger("portal.http").info("request handled", extra=extra)
    return response

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

# ---------- endpoints ----------
@api_bp.get("/csrf")
@csrf.exempt
def get_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax")
    return resp

@api_bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    })
