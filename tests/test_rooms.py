from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Building, Section, SectionAssignment, User, Role
from blueprints.core.errors import Conflict, InvalidInput, NotFound
from blueprints.rooms import services as rooms

@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        db.session.add(Building(building_name="Main", num_floors=4, rooms_per_floor=10))
        db.session.add_all([
            Section(section_name="BSIT-1A", grade_level="1st Year", school_year="2025-2026", course="BSIT"),
            Section(section_name="BSIT-1B", grade_level="1st Year", school_year="2025-2026", course="BSIT"),
        ])
        admin = User(username="admin", email="admin@example.com", full_name="Admin", role=Role.ADMIN.value)
        admin.set_password("pass")
        db.session.add(admin)
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

def _section(name):
    return Section.query.filter_by(section_name=name).one()

def _login_admin(client):
    r = client.post("/api/v1/auth/login", json={"username": "admin", "password": "pass"})
    assert r.status_code == 200, r.get_json()

# ---------- parsing ----------
def test_floor_is_derived_from_room_number(app):
    assert rooms.derive_floor(305) == 3
    assert rooms.derive_floor(45) == 1
    assert rooms.derive_floor(100) == 1
    row = rooms.upsert_section_room(_section("BSIT-1A"), "Main", "305")
    assert row.floor_number == 3 and row.room_number == 305
    assert row.school_year == "2025-2026"

def test_explicit_floor_wins(app):
    row = rooms.upsert_section_room(_section("BSIT-1A"), "Main", 12, floor=2)
    assert row.floor_number == 2

@pytest.mark.parametrize("room", ["", None, "  ", "20A", "-3", "2²"])
def test_room_must_be_numeric(app, room):
    with pytest.raises(InvalidInput):
        rooms.upsert_section_room(_section("BSIT-1A"), "Main", room)

def test_unknown_building(app):
    with pytest.raises(NotFound):
        rooms.upsert_section_room(_section("BSIT-1A"), "Annex", "101")

# ---------- exclusivity ----------
def test_room_held_by_another_section_conflicts(app):
    a, b = _section("BSIT-1A"), _section("BSIT-1B")
    rooms.upsert_section_room(a, "Main", "203")
    with pytest.raises(Conflict) as ei:
        rooms.upsert_section_room(b, "Main", "203")
    assert ei.value.details["section_id"] == a.id
    # another school year is a different slot
    other = rooms.upsert_section_room(b, "Main", "203", school_year="2026-2027")
    assert other.status == "active"

def test_same_room_again_is_a_noop(app):
    a = _section("BSIT-1A")
    first = rooms.upsert_section_room(a, "Main", "203")
    again = rooms.upsert_section_room(a, "Main", 203)
    assert again.id == first.id
    assert SectionAssignment.query.count() == 1

def test_moving_supersedes_previous_room(app):
    a, b = _section("BSIT-1A"), _section("BSIT-1B")
    old = rooms.upsert_section_room(a, "Main", "203")
    new = rooms.upsert_section_room(a, "Main", "204")
    assert new.id != old.id
    assert db.session.get(SectionAssignment, old.id).status == "superseded"
    assert rooms.current_assignment(a.id).id == new.id
    # the released room is free again
    taken = rooms.upsert_section_room(b, "Main", "203")
    assert taken.status == "active"
    history = rooms.list_section_assignments(include_history=True)
    assert len(history) == 3
    assert len(rooms.list_section_assignments()) == 2

def test_unique_index_violation_maps_to_conflict(app):
    a, b = _section("BSIT-1A"), _section("BSIT-1B")
    held = rooms.upsert_section_room(a, "Main", "203")
    db.session.commit()
    building = db.session.get(Building, held.building_id)
    # a row slipped in past the pre-check, as a concurrent writer would
    db.session.add(SectionAssignment(section_id=b.id, building_id=building.id, floor_number=2,
                                     room_number=203, school_year="2025-2026", status="active"))
    with pytest.raises(Conflict):
        rooms._flush_or_conflict(building, 2, 203, "2025-2026")
    assert SectionAssignment.query.count() == 1

def test_resolve_section_room(app):
    a = _section("BSIT-1A")
    assert rooms.resolve_section_room(a.id) == {"building": None, "floor": None, "room": None}
    rooms.upsert_section_room(a, "Main", "203")
    assert rooms.resolve_section_room(a.id) == {"building": "Main", "floor": 2, "room": 203}

# ---------- api ----------
def test_section_assignment_api(client, app):
    _login_admin(client)
    a, b = _section("BSIT-1A"), _section("BSIT-1B")
    r = client.post("/api/v1/admin/section-assignments",
                    json={"section_id": a.id, "building": "Main", "room": "203"})
    assert r.status_code == 201, r.get_json()
    item = r.get_json()["item"]
    assert item["floor_number"] == 2 and item["building_name"] == "Main"

    r = client.post("/api/v1/admin/section-assignments",
                    json={"section_id": b.id, "building": "Main", "room": "203"})
    assert r.status_code == 409
    assert r.get_json()["code"] == "CONFLICT"

    r = client.put(f"/api/v1/admin/section-assignments/{item['id']}",
                   json={"section_id": a.id, "building": "Main", "room": "310"})
    assert r.status_code == 200
    assert r.get_json()["item"]["floor_number"] == 3

    r = client.delete(f"/api/v1/admin/section-assignments/{item['id']}")
    assert r.status_code == 200
    assert client.get("/api/v1/admin/section-assignments").get_json()["items"] == []

def test_superscript_digits_are_rejected(client, app):
    _login_admin(client)
    r = client.post("/api/v1/admin/section-assignments",
                    json={"section_id": _section("BSIT-1A").id, "building": "Main", "room": "2²"})
    assert r.status_code == 422
    assert r.get_json()["code"] == "INVALID_INPUT"
    assert SectionAssignment.query.count() == 0
    with pytest.raises(InvalidInput):
        rooms.upsert_section_room(_section("BSIT-1A"), "Main", "203", floor="²")

def test_section_assignment_requires_admin(client):
    r = client.get("/api/v1/admin/section-assignments")
    assert r.status_code == 401
