# blueprints/admin/services.py
from __future__ import annotations

from sqlalchemy import func, select

from extensions import db
from models import (
    Building, Schedule, Section, StudyLoad, Subject, TeacherAssignment,
    TeacherEvaluation, User, UserAssignment, AssignmentStatus, Role,
)

ACTIVE = AssignmentStatus.ACTIVE.value
MAX_RATING = 5


def _count(stmt) -> int:
    return int(db.session.scalar(stmt) or 0)


def dashboard_stats() -> dict:
    by_role = dict(db.session.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    ).all())
    sections = _count(select(func.count(Section.id)))
    loaded = _count(select(func.count(func.distinct(StudyLoad.section_id))))
    return {
        "users": {r.value: int(by_role.get(r.value, 0)) for r in Role},
        "sections": sections,
        "sections_with_load": loaded,
        "sections_without_load": max(sections - loaded, 0),
        "subjects": _count(select(func.count(Subject.id))),
        "buildings": _count(select(func.count(Building.id))),
        "schedules": _count(select(func.count(Schedule.id))),
        "teacher_assignments": _count(
            select(func.count(TeacherAssignment.id)).where(TeacherAssignment.status == ACTIVE)),
        "enrolled_students": _count(
            select(func.count(func.distinct(UserAssignment.user_id))).where(UserAssignment.status == ACTIVE)),
    }


def lowest_rated_teachers(limit: int = 5) -> list[dict]:
    avg = func.avg(TeacherEvaluation.rating)
    rows = db.session.execute(
        select(User.id, User.full_name, avg.label("avg_rating"), func.count(TeacherEvaluation.id))
        .join(TeacherEvaluation, TeacherEvaluation.teacher_id == User.id)
        .group_by(User.id, User.full_name)
        .order_by(avg.asc(), User.id.asc())
        .limit(limit)
    ).all()
    out = []
    for tid, name, avg_rating, n in rows:
        avg_rating = float(avg_rating or 0)
        out.append({
            "teacher_id": tid,
            "full_name": name,
            "average_rating": round(avg_rating, 2),
            "percentage": round(avg_rating / MAX_RATING * 100, 2),
            "evaluations": int(n),
        })
    return out
