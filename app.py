from __future__ import annotations
import os
from flask import Flask
from config import config_map
from extensions import db, migrate, login_manager, csrf, cache
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # the users table may not exist yet (before `flask db upgrade`)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User  # local import avoids a cycle
        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            if User.query.filter_by(email=u["email"]).first():
                continue
            user = User(
                username=u["username"],
                email=u["email"],
                full_name=u.get("full_name") or u["username"],
                role=u["role"],
                is_active_flag=True,
            )
            user.set_password(u["password"])
            db.session.add(user)
            created += 1
        if created:
            db.session.commit()

def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.directory import api_bp as directory_api_bp
    from blueprints.rooms.routes import api_bp as rooms_api_bp
    from blueprints.constraints.routes import api_bp as constraints_api_bp
    from blueprints.schedule.routes import api_bp as schedule_api_bp
    from blueprints.study_load.routes import api_bp as study_load_api_bp
    from blueprints.teacher.routes import api_bp as teacher_api_bp
    from blueprints.student.routes import api_bp as student_api_bp
    from blueprints.admin.routes import api_bp as admin_api_bp

    # core carries the app-wide error handlers and request logging
    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_api_bp, url_prefix="/api/v1")
    app.register_blueprint(directory_api_bp, url_prefix="/api/v1")
    app.register_blueprint(rooms_api_bp, url_prefix="/api/v1")
    app.register_blueprint(constraints_api_bp, url_prefix="/api/v1/admin")
    app.register_blueprint(schedule_api_bp, url_prefix="/api/v1")
    app.register_blueprint(study_load_api_bp, url_prefix="/api/v1")
    app.register_blueprint(teacher_api_bp, url_prefix="/api/v1")
    app.register_blueprint(student_api_bp, url_prefix="/api/v1")
    app.register_blueprint(admin_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest sets PYTEST_CURRENT_TEST: every app gets its own in-memory database
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})
    app.config.setdefault("WTF_CSRF_TIME_LIMIT", None)
    app.config.setdefault("WTF_CSRF_HEADERS", ["X-CSRF-Token", "X-CSRFToken"])

    os.makedirs(app.instance_path, exist_ok=True)
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    cache.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
