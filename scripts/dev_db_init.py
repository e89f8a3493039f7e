# scripts/dev_db_init.py
from app import create_app
from extensions import db
from models import Building, Section, Subject, User, UserAssignment, Role


def _user(username, role, full_name):
    u = User.query.filter_by(username=username).first()
    if u:
        return u
    u = User(username=username, email=f"{username}@example.com", full_name=full_name, role=role)
    u.set_password("pass")
    db.session.add(u)
    return u


def seed_minimal():
    if not Building.query.filter_by(building_name="Main").first():
        db.session.add(Building(building_name="Main", num_floors=4, rooms_per_floor=10,
                                description="Main campus building"))

    section = Section.query.filter_by(section_name="BSIT-1A").first()
    if not section:
        section = Section(section_name="BSIT-1A", grade_level="1st Year", school_year="2025-2026",
                          course="BSIT", major=None)
        db.session.add(section)

    if not Subject.query.filter_by(subject_code="IT101").first():
        db.session.add(Subject(subject_code="IT101", subject_name="Introduction to Computing",
                               units=3, course="BSIT", year_level=1, semester="1st Semester"))

    _user("admin", Role.ADMIN.value, "Portal Admin")
    _user("t1", Role.TEACHER.value, "Teacher One")
    student = _user("s1", Role.STUDENT.value, "Student One")
    db.session.flush()

    if not UserAssignment.query.filter_by(user_id=student.id).first():
        db.session.add(UserAssignment(user_id=student.id, section_id=section.id, year_level="1st Year"))

    db.session.commit()


if __name__ == "__main__":
    app = create_app("dev")
    with app.app_context():
        db.create_all()
        seed_minimal()
