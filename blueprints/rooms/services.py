# blueprints/rooms/services.py
from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import (
    Building, Schedule, Section, SectionAssignment, RoomAssignmentStatus,
)
from blueprints.core.errors import Conflict, InvalidInput, NotFound, get_or_404
from blueprints.core.semesters import current_school_year

log = logging.getLogger(__name__)

ACTIVE = RoomAssignmentStatus.ACTIVE.value
SUPERSEDED = RoomAssignmentStatus.SUPERSEDED.value


# ---------- parsing ----------
def parse_room_number(room) -> int:
    raw = "" if room is None else str(room).strip()
    if not raw:
        raise InvalidInput("Room is required", {"field": "room"})
    if not raw.isdecimal():
        raise InvalidInput("Room must be numeric", {"field": "room", "value": raw})
    return int(raw)


def derive_floor(room_number: int) -> int:
    """Floor from the hundreds digit; rooms under 100 are on floor 1."""
    return max(room_number // 100, 1)


def _parse_floor(floor, room_number: int) -> int:
    if floor is None or str(floor).strip() == "":
        return derive_floor(room_number)
    raw = str(floor).strip()
    if not raw.isdecimal() or int(raw) < 1:
        raise InvalidInput("Floor must be a positive number", {"field": "floor", "value": raw})
    return int(raw)


def building_by_name(name: str | None) -> Building:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Building is required", {"field": "building"})
    b = db.session.scalar(select(Building).where(Building.building_name == name))
    if b is None:
        raise NotFound("Building not found", {"building": name})
    return b


def resolve_school_year(section: Section, school_year: str | None = None) -> str:
    return (school_year or "").strip() or section.school_year or current_school_year()


# ---------- queries ----------
def current_assignment(section_id: int) -> Optional[SectionAssignment]:
    """The section's live room: its highest-id active row."""
    return db.session.scalar(
        select(SectionAssignment)
        .where(SectionAssignment.section_id == section_id,
               SectionAssignment.status == ACTIVE)
        .order_by(SectionAssignment.id.desc())
        .limit(1)
    )


def _room_holder(building_id: int, floor: int, room: int, school_year: str,
                 *, exclude_section_id: int | None = None,
                 exclude_id: int | None = None) -> Optional[SectionAssignment]:
    q = select(SectionAssignment).where(
        SectionAssignment.building_id == building_id,
        SectionAssignment.floor_number == floor,
        SectionAssignment.room_number == room,
        SectionAssignment.school_year == school_year,
        SectionAssignment.status == ACTIVE,
    )
    if exclude_section_id is not None:
        q = q.where(SectionAssignment.section_id != exclude_section_id)
    if exclude_id is not None:
        q = q.where(SectionAssignment.id != exclude_id)
    return db.session.scalar(q.limit(1))


def _conflict(building: Building, floor: int, room: int, school_year: str, holder_section_id=None) -> Conflict:
    details = {"building": building.building_name, "floor": floor, "room": room,
               "school_year": school_year}
    if holder_section_id is not None:
        details["section_id"] = holder_section_id
    return Conflict("Room is already assigned to another section for this school year", details)


def _flush_or_conflict(building, floor, room, school_year):
    # the partial unique indexes are the authority; a lost race lands here
    try:
        db.session.flush()
    except IntegrityError as ex:
        db.session.rollback()
        raise _conflict(building, floor, room, school_year) from ex


# ---------- commands ----------
def upsert_section_room(section: Section, building_name: str, room,
                        school_year: str | None = None, floor=None) -> SectionAssignment:
    """Give ``section`` a room for a school year.

    A different room supersedes the section's current row and inserts a new
    active one. Asking for the room the section already holds is a no-op.
    """
    room_no = parse_room_number(room)
    building = building_by_name(building_name)
    floor_no = _parse_floor(floor, room_no)
    year = resolve_school_year(section, school_year)

    holder = _room_holder(building.id, floor_no, room_no, year, exclude_section_id=section.id)
    if holder is not None:
        raise _conflict(building, floor_no, room_no, year, holder.section_id)

    current = current_assignment(section.id)
    if current is not None and (current.building_id, current.floor_number,
                                current.room_number, current.school_year) == (building.id, floor_no, room_no, year):
        return current

    if current is not None:
        current.status = SUPERSEDED
        # release the section's active slot before the new row goes in
        _flush_or_conflict(building, floor_no, room_no, year)
        log.info("room assignment superseded",
                 extra={"event": "room_assignment_superseded", "section_id": section.id})

    row = SectionAssignment(
        section_id=section.id,
        building_id=building.id,
        floor_number=floor_no,
        room_number=room_no,
        school_year=year,
        status=ACTIVE,
    )
    db.session.add(row)
    _flush_or_conflict(building, floor_no, room_no, year)
    log.info("room assigned", extra={"event": "room_assigned", "section_id": section.id})
    return row


def update_section_assignment(assignment_id: int, *, building_name: str, room,
                              school_year: str | None = None, floor=None,
                              section_id: int | None = None) -> SectionAssignment:
    """Explicit admin edit: the row is changed in place."""
    row = get_or_404(SectionAssignment, assignment_id, "Section assignment")
    section = get_or_404(Section, section_id or row.section_id, "Section")
    room_no = parse_room_number(room)
    building = building_by_name(building_name)
    floor_no = _parse_floor(floor, room_no)
    year = (school_year or "").strip() or row.school_year or resolve_school_year(section)

    holder = _room_holder(building.id, floor_no, room_no, year,
                          exclude_section_id=section.id, exclude_id=row.id)
    if holder is not None:
        raise _conflict(building, floor_no, room_no, year, holder.section_id)

    row.section_id = section.id
    row.building_id = building.id
    row.floor_number = floor_no
    row.room_number = room_no
    row.school_year = year
    _flush_or_conflict(building, floor_no, room_no, year)
    return row


def delete_section_assignment(assignment_id: int) -> int:
    """Delete the row; meetings that pointed at it lose their room. Returns the section id."""
    row = get_or_404(SectionAssignment, assignment_id, "Section assignment")
    section_id = row.section_id
    db.session.execute(update(Schedule).where(Schedule.room_id == row.id).values(room_id=None))
    db.session.delete(row)
    db.session.flush()
    return section_id


def resolve_section_room(section_id: int | None, room_id: int | None = None) -> dict:
    """Building / floor / room shown for a meeting.

    The meeting's own room row wins; otherwise the section's current room.
    """
    row = db.session.get(SectionAssignment, room_id) if room_id else None
    if row is None and section_id is not None:
        row = current_assignment(section_id)
    if row is None:
        return {"building": None, "floor": None, "room": None}
    return {
        "building": row.building.building_name if row.building else None,
        "floor": row.floor_number,
        "room": row.room_number,
    }


def list_section_assignments(include_history: bool = False) -> list[dict]:
    q = select(SectionAssignment).order_by(SectionAssignment.id.desc())
    if not include_history:
        q = q.where(SectionAssignment.status == ACTIVE)
    return [to_dict(a) for a in db.session.scalars(q)]


def to_dict(a: SectionAssignment) -> dict:
    return {
        "id": a.id,
        "section_id": a.section_id,
        "section_name": a.section.section_name if a.section else None,
        "building_id": a.building_id,
        "building_name": a.building.building_name if a.building else None,
        "floor_number": a.floor_number,
        "room_number": a.room_number,
        "school_year": a.school_year,
        "status": a.status,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }
