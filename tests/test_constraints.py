from __future__ import annotations
from datetime import time
import pytest
from sqlalchemy.dialects import postgresql, sqlite

from app import create_app
from extensions import db
from models import Schedule, Section, Subject, TeacherAssignment, User, Role
from blueprints.core.errors import InvalidInput, NoTeacherAssigned
from blueprints.constraints import services as cs

def _user(username, role, name):
    u = User(username=username, email=f"{username}@example.com", full_name=name, role=role)
    u.set_password("pass")
    db.session.add(u)
    return u

@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        _user("admin", Role.ADMIN.value, "Admin")
        _user("t1", Role.TEACHER.value, "Teacher One")
        _user("t2", Role.TEACHER.value, "Teacher Two")
        db.session.add_all([
            Section(section_name="BSIT-1A", grade_level="1st Year", school_year="2025-2026", course="BSIT"),
            Section(section_name="BSIT-1B", grade_level="1st Year", school_year="2025-2026", course="BSIT"),
            Subject(subject_code="IT101", subject_name="Intro to Computing", units=3, course="BSIT", year_level=1),
            Subject(subject_code="IT102", subject_name="Programming 1", units=3, course="BSIT", year_level=1),
        ])
        db.session.flush()
        t1 = User.query.filter_by(username="t1").one()
        sec = Section.query.filter_by(section_name="BSIT-1A").one()
        it101 = Subject.query.filter_by(subject_code="IT101").one()
        ta = TeacherAssignment(teacher_id=t1.id, subject_id=it101.id, section_id=sec.id, status="active")
        db.session.add(ta)
        db.session.flush()
        db.session.add(Schedule(teacher_assignment_id=ta.id, section_id=sec.id, day_of_week="Monday",
                                start_time=time(9, 0), end_time=time(10, 30)))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

def _teacher(username="t1"):
    return User.query.filter_by(username=username).one()

def _t(s):
    return cs.parse_time(s)

# ---------- intervals ----------
def test_interval_overlap_rules():
    assert cs.intervals_overlap(_t("09:00"), _t("10:30"), _t("09:45"), _t("11:00"))
    assert cs.intervals_overlap(_t("09:00"), _t("10:30"), _t("09:15"), _t("10:00"))
    assert cs.intervals_overlap(_t("09:00"), _t("10:30"), _t("09:00"), _t("10:30"))
    # touching ends are back to back, not overlapping
    assert not cs.intervals_overlap(_t("09:00"), _t("10:30"), _t("10:30"), _t("12:00"))
    assert not cs.intervals_overlap(_t("10:30"), _t("12:00"), _t("09:00"), _t("10:30"))

def test_time_parsing():
    assert cs.parse_time("7:05") == time(7, 5)
    assert cs.parse_time("13:30:15") == time(13, 30, 15)
    for bad in ("", "25:00", "10", "ab:cd", "10:60", "1²:00", "10:3²"):
        with pytest.raises(InvalidInput):
            cs.parse_time(bad)
    with pytest.raises(InvalidInput):
        cs.parse_interval("10:00", "10:00")
    assert cs.parse_day("monday") == "Monday"
    with pytest.raises(InvalidInput):
        cs.parse_day("Someday")
    assert cs.is_placeholder("00:00", "00:00:00")
    assert not cs.is_placeholder("00:00", "01:00")

def test_teacher_lock_is_a_row_lock():
    assert "FOR UPDATE" in str(cs.teacher_lock(5).compile(dialect=postgresql.dialect()))
    # sqlite has no row locks; its single writer lock serialises the bookings
    assert "FOR UPDATE" not in str(cs.teacher_lock(5).compile(dialect=sqlite.dialect()))

# ---------- teacher overlap ----------
def test_partial_overlap_is_reported(app):
    errors = cs.check_teacher_overlap(_teacher().id, "Monday", _t("09:45"), _t("11:00"))
    assert len(errors) == 1
    assert errors[0].code == "TEACHER_BUSY"
    assert errors[0].details["start_time"] == "09:00"

def test_back_to_back_is_allowed(app):
    assert not cs.has_conflict(_teacher().id, "Monday", _t("10:30"), _t("12:00"))
    assert not cs.has_conflict(_teacher().id, "Monday", _t("07:30"), _t("09:00"))

def test_nested_interval_conflicts(app):
    assert cs.has_conflict(_teacher().id, "Monday", _t("09:15"), _t("10:00"))

def test_other_teacher_and_other_day_are_free(app):
    assert not cs.has_conflict(_teacher("t2").id, "Monday", _t("09:00"), _t("10:30"))
    assert not cs.has_conflict(_teacher().id, "Tuesday", _t("09:00"), _t("10:30"))

def test_inactive_assignment_does_not_block(app):
    ta = TeacherAssignment.query.one()
    ta.status = "inactive"
    db.session.commit()
    assert not cs.has_conflict(_teacher().id, "Monday", _t("09:00"), _t("10:30"))

def test_excluded_meeting_is_ignored(app):
    sid = Schedule.query.one().id
    assert not cs.has_conflict(_teacher().id, "Monday", _t("09:00"), _t("10:30"), exclude_schedule_id=sid)

# ---------- teacher resolution ----------
def test_section_scoped_assignment_wins_over_floating(app):
    it101 = Subject.query.filter_by(subject_code="IT101").one()
    sec = Section.query.filter_by(section_name="BSIT-1A").one()
    other = Section.query.filter_by(section_name="BSIT-1B").one()
    floating = TeacherAssignment(teacher_id=_teacher("t2").id, subject_id=it101.id, section_id=None, status="active")
    db.session.add(floating)
    db.session.commit()
    assert cs.find_teacher_assignment(it101, sec).teacher_id == _teacher().id
    assert cs.find_teacher_assignment(it101, other).id == floating.id

def test_no_teacher_for_subject(app):
    it102 = Subject.query.filter_by(subject_code="IT102").one()
    assert cs.find_teacher_assignment(it102, None) is None
    with pytest.raises(NoTeacherAssigned):
        cs.resolve_teacher_assignment(it102, None)

# ---------- dry-run endpoint ----------
def _login_admin(client):
    r = client.post("/api/v1/auth/login", json={"username": "admin", "password": "pass"})
    assert r.status_code == 200

def test_check_endpoint(client, app):
    _login_admin(client)
    tid = _teacher().id
    busy = client.post("/api/v1/admin/constraints/check",
                       json={"teacher_id": tid, "day_of_week": "Monday",
                             "start_time": "09:45", "end_time": "11:00"})
    assert busy.status_code == 409
    assert busy.get_json()["errors"][0]["code"] == "TEACHER_BUSY"

    free = client.post("/api/v1/admin/constraints/check",
                       json={"teacher_id": tid, "day_of_week": "Monday",
                             "start_time": "10:30", "end_time": "12:00"})
    assert free.status_code == 200 and free.get_json()["ok"] is True

    it101 = Subject.query.filter_by(subject_code="IT101").one()
    by_subject = client.post("/api/v1/admin/constraints/check",
                             json={"subject_id": it101.id, "day_of_week": "monday",
                                   "start_time": "09:00", "end_time": "09:30"})
    assert by_subject.status_code == 409

    missing = client.post("/api/v1/admin/constraints/check",
                          json={"day_of_week": "Monday", "start_time": "09:00", "end_time": "10:00"})
    assert missing.status_code == 400

    bad = client.post("/api/v1/admin/constraints/check", json={"teacher_id": tid})
    assert bad.status_code == 422
