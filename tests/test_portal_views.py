from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Building, Section, Subject, TeacherAssignment, User, UserAssignment, Role

@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        for username, role, name in (("admin", Role.ADMIN, "Admin"), ("t1", Role.TEACHER, "Maria Santos"),
                                     ("s1", Role.STUDENT, "Juan Dela Cruz")):
            u = User(username=username, email=f"{username}@example.com", full_name=name, role=role.value)
            u.set_password("pass")
            db.session.add(u)
        db.session.add_all([
            Section(section_name="BSIT-1A", grade_level="1st Year", school_year="2025-2026", course="BSIT"),
            Building(building_name="Main", num_floors=4, rooms_per_floor=10),
            Subject(subject_code="IT101", subject_name="Intro to Computing", units=3, course="BSIT",
                    year_level=1, semester="1st"),
            Subject(subject_code="IT201", subject_name="Data Structures", units=3, course="BSIT",
                    year_level=1, semester="2nd"),
        ])
        db.session.flush()
        sec = Section.query.one()
        t1 = User.query.filter_by(username="t1").one()
        for subj in Subject.query.all():
            db.session.add(TeacherAssignment(teacher_id=t1.id, subject_id=subj.id, section_id=sec.id,
                                             semester=subj.semester, status="active"))
        db.session.add(UserAssignment(user_id=User.query.filter_by(username="s1").one().id,
                                      section_id=sec.id, year_level="1st Year", status="active"))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

def _login(client, username):
    client.post("/api/v1/auth/logout")
    r = client.post("/api/v1/auth/login", json={"username": username, "password": "pass"})
    assert r.status_code == 200, r.get_json()

def _schedule(client, code, day, start, end):
    subj = Subject.query.filter_by(subject_code=code).one()
    r = client.post("/api/v1/admin/schedules",
                    json={"section_id": Section.query.one().id, "subject_id": subj.id, "day_of_week": day,
                          "start_time": start, "end_time": end, "building": "Main", "room": "203"})
    assert r.status_code == 201, r.get_json()

def test_teacher_views(client, app):
    _login(client, "admin")
    _schedule(client, "IT201", "Wednesday", "13:00", "14:30")
    _schedule(client, "IT101", "Monday", "09:00", "10:30")

    _login(client, "t1")
    data = client.get("/api/v1/teacher/schedule").get_json()
    assert data["counts"] == {"meetings": 2, "days": 2}
    assert [d["day_of_week"] for d in data["days"]] == ["Monday", "Wednesday"]
    lesson = data["days"][0]["lessons"][0]
    assert lesson["subject_code"] == "IT101" and lesson["room"] == 203 and lesson["building"] == "Main"

    sections = client.get("/api/v1/teacher/sections").get_json()["items"]
    assert sections[0]["section_name"] == "BSIT-1A"
    assert sections[0]["subjects"] == ["IT101", "IT201"]
    assert sections[0]["students"] == 1
    roster = client.get("/api/v1/teacher/students").get_json()["items"]
    assert [(s["full_name"], s["section_name"]) for s in roster] == [("Juan Dela Cruz", "BSIT-1A")]
    assert client.get(f"/api/v1/teacher/students?section_id={sections[0]['id']}").get_json()["items"] == roster

    assignments = client.get("/api/v1/teacher/assignments").get_json()["items"]
    assert {a["semester_label"] for a in assignments} == {"First Semester", "Second Semester"}

def test_teacher_schedule_refreshes_after_new_meeting(client, app):
    _login(client, "t1")
    assert client.get("/api/v1/teacher/schedule").get_json()["counts"]["meetings"] == 0
    _login(client, "admin")
    _schedule(client, "IT101", "Friday", "08:00", "09:00")
    tid = User.query.filter_by(username="t1").one().id
    # admin peeks at the teacher's view
    assert client.get(f"/api/v1/teacher/schedule?teacher_id={tid}").get_json()["counts"]["meetings"] == 1
    _login(client, "t1")
    assert client.get("/api/v1/teacher/schedule").get_json()["counts"]["meetings"] == 1

def test_student_views(client, app):
    _login(client, "s1")
    item = client.get("/api/v1/student/assignment").get_json()["item"]
    assert item["section_name"] == "BSIT-1A"
    assert item["room"] == {"building": None, "floor": None, "room": None}
    assert client.get("/api/v1/student/study-load").get_json()["items"] == []

    _login(client, "admin")
    _schedule(client, "IT101", "Monday", "09:00", "10:30")
    _schedule(client, "IT201", "Tuesday", "09:00", "10:30")

    _login(client, "s1")
    item = client.get("/api/v1/student/assignment").get_json()["item"]
    assert item["room"] == {"building": "Main", "floor": 2, "room": 203}
    everything = client.get("/api/v1/student/study-load").get_json()
    assert len(everything["items"]) == 2 and everything["total_units"] == 6
    second = client.get("/api/v1/student/study-load", query_string={"semester": "2nd Semester"}).get_json()
    assert [i["subject_code"] for i in second["items"]] == ["IT201"]
    assert second["semester"] == "second"

def test_student_without_section(client, app):
    UserAssignment.query.update({"status": "inactive"})
    db.session.commit()
    _login(client, "s1")
    assert client.get("/api/v1/student/assignment").get_json()["item"] is None
    assert client.get("/api/v1/student/study-load?semester=1st").get_json()["items"] == []

def test_teacher_cannot_use_student_views(client, app):
    _login(client, "t1")
    assert client.get("/api/v1/student/study-load").status_code == 403

def test_teacher_sections_follow_enrolments(client, app):
    s2 = User(username="s2", email="s2@example.com", full_name="Ana Reyes", role=Role.STUDENT.value)
    s2.set_password("pass")
    db.session.add_all([s2, Section(section_name="BSIT-1B", grade_level="1st Year", school_year="2025-2026",
                                    course="BSIT")])
    db.session.commit()
    sec_a = Section.query.filter_by(section_name="BSIT-1A").one()
    sec_b = Section.query.filter_by(section_name="BSIT-1B").one()
    tid = User.query.filter_by(username="t1").one().id

    def students():
        items = client.get(f"/api/v1/teacher/sections?teacher_id={tid}").get_json()["items"]
        return {i["section_name"]: i["students"] for i in items}

    def roster():
        items = client.get(f"/api/v1/teacher/students?teacher_id={tid}").get_json()["items"]
        return [i["username"] for i in items]

    _login(client, "admin")
    assert students() == {"BSIT-1A": 1}
    assert roster() == ["s1"]
    r = client.post("/api/v1/admin/user-assignments", json={"user_id": s2.id, "section_id": sec_a.id})
    assert r.status_code == 201, r.get_json()
    ua_id = r.get_json()["id"]
    assert students() == {"BSIT-1A": 2}
    assert roster() == ["s2", "s1"]

    # moving the student out drops them from the old section's count
    r = client.put(f"/api/v1/admin/user-assignments/{ua_id}", json={"user_id": s2.id, "section_id": sec_b.id})
    assert r.status_code == 200, r.get_json()
    assert students() == {"BSIT-1A": 1}
    assert roster() == ["s1"]

    r = client.put(f"/api/v1/admin/user-assignments/{ua_id}", json={"user_id": s2.id, "section_id": sec_a.id})
    assert students() == {"BSIT-1A": 2}
    assert client.delete(f"/api/v1/admin/user-assignments/{ua_id}").status_code == 204
    assert students() == {"BSIT-1A": 1}
    assert roster() == ["s1"]

def test_dashboard_follows_study_load_clear(client, app):
    _login(client, "admin")
    _schedule(client, "IT101", "Monday", "00:00", "00:00")
    stats = client.get("/api/v1/admin/dashboard/stats").get_json()["stats"]
    assert stats["sections_with_load"] == 1

    r = client.post("/api/v1/admin/study-load/clear", json={"section_id": Section.query.one().id})
    assert r.status_code == 200
    stats = client.get("/api/v1/admin/dashboard/stats").get_json()["stats"]
    assert stats["sections_with_load"] == 0
    assert stats["sections_without_load"] == 1

def test_section_rename_reaches_teacher_views(client, app):
    _login(client, "admin")
    _schedule(client, "IT101", "Monday", "09:00", "10:30")
    tid = User.query.filter_by(username="t1").one().id

    def names():
        sched = client.get(f"/api/v1/teacher/schedule?teacher_id={tid}").get_json()
        assignments = client.get(f"/api/v1/teacher/assignments?teacher_id={tid}").get_json()["items"]
        return ({lesson["section_name"] for d in sched["days"] for lesson in d["lessons"]},
                {a["section_name"] for a in assignments})

    assert names() == ({"BSIT-1A"}, {"BSIT-1A"})
    r = client.put(f"/api/v1/admin/sections/{Section.query.one().id}",
                   json={"section_name": "BSIT-1X", "grade_level": "1st Year", "school_year": "2025-2026",
                         "course": "BSIT"})
    assert r.status_code == 200, r.get_json()
    assert names() == ({"BSIT-1X"}, {"BSIT-1X"})
