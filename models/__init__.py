from datetime import datetime, time
from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, DateTime, Time,
    Integer, Numeric, String, Text, JSON, text,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from werkzeug.security import generate_password_hash, check_password_hash

from extensions import db

# ---------- Enums ----------
class Role(str, PyEnum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

class AssignmentStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class RoomAssignmentStatus(str, PyEnum):
    ACTIVE = "active"
    SUPERSEDED = "superseded"

# partial unique indexes only look at live rows
_ACTIVE_ONLY = text("status = 'active'")


# ---------- Core Entities ----------
class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=Role.STUDENT.value)
    is_active_flag: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return check_password_hash(self.password_hash, raw)

    # Flask-Login expects .is_active
    @property
    def is_active(self):
        return bool(self.is_active_flag)

    def __repr__(self):
        return f"<User {self.username}>"


class Section(db.Model):
    __tablename__ = "sections"

    id: Mapped[int] = mapped_column(primary_key=True)
    section_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    grade_level: Mapped[str] = mapped_column(String(32), nullable=False)
    school_year: Mapped[str | None] = mapped_column(String(16))
    course: Mapped[str | None] = mapped_column(String(100))
    major: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Section {self.section_name}>"


class Subject(db.Model):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True)
    subject_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    subject_name: Mapped[str] = mapped_column(String(255), nullable=False)
    units: Mapped[float] = mapped_column(Numeric(4, 1), nullable=False, default=3)
    course: Mapped[str] = mapped_column(String(100), nullable=False)
    major: Mapped[str | None] = mapped_column(String(100))
    year_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # free text as entered; normalised on read
    semester: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self):
        return f"<Subject {self.subject_code}>"


class Building(db.Model):
    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(primary_key=True)
    building_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    num_floors: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rooms_per_floor: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str | None] = mapped_column(Text)


class TeacherAssignment(db.Model):
    __tablename__ = "teacher_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    teacher_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL section = floating assignment covering any section
    section_id: Mapped[int | None] = mapped_column(ForeignKey("sections.id", ondelete="SET NULL"), index=True)
    school_year: Mapped[str | None] = mapped_column(String(16))
    semester: Mapped[str] = mapped_column(String(16), nullable=False, default="1st")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=AssignmentStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    teacher = relationship("User")
    subject = relationship("Subject")
    section = relationship("Section")
    schedules = relationship("Schedule", back_populates="teacher_assignment", cascade="all, delete-orphan")

    __table_args__ = (
        Index("uq_teacher_subject_active", "teacher_id", "subject_id", unique=True,
              sqlite_where=_ACTIVE_ONLY, postgresql_where=_ACTIVE_ONLY),
    )


class SectionAssignment(db.Model):
    """Room held by a section for a school year.

    Rows are never rewritten by the schedule pipeline: a new room creates a new
    ``active`` row and the previous one becomes ``superseded``.
    """
    __tablename__ = "section_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    section_id: Mapped[int] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    floor_number: Mapped[int] = mapped_column(Integer, nullable=False)
    room_number: Mapped[int] = mapped_column(Integer, nullable=False)
    school_year: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RoomAssignmentStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    section = relationship("Section")
    building = relationship("Building")

    __table_args__ = (
        Index("uq_room_assignment_active", "building_id", "floor_number", "room_number", "school_year",
              unique=True, sqlite_where=_ACTIVE_ONLY, postgresql_where=_ACTIVE_ONLY),
        Index("uq_section_room_active", "section_id", unique=True,
              sqlite_where=_ACTIVE_ONLY, postgresql_where=_ACTIVE_ONLY),
    )


class Schedule(db.Model):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    teacher_assignment_id: Mapped[int] = mapped_column(
        ForeignKey("teacher_assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    # section the meeting was booked for; a floating assignment has none of its own
    section_id: Mapped[int | None] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), index=True)
    day_of_week: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    room_id: Mapped[int | None] = mapped_column(ForeignKey("section_assignments.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    teacher_assignment = relationship("TeacherAssignment", back_populates="schedules")
    section = relationship("Section")
    room = relationship("SectionAssignment")


class StudyLoad(db.Model):
    """Denormalised (section, subject, semester) row.

    Section, subject and teacher columns are copies taken when the row was
    synthesised; they are not refreshed afterwards.
    """
    __tablename__ = "study_load"

    id: Mapped[int] = mapped_column(primary_key=True)
    section_id: Mapped[int] = mapped_column(ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    semester: Mapped[str | None] = mapped_column(String(32))
    school_year: Mapped[str | None] = mapped_column(String(16))
    course: Mapped[str | None] = mapped_column(String(100))
    major: Mapped[str | None] = mapped_column(String(100))
    year_level: Mapped[str | None] = mapped_column(String(32))
    section: Mapped[str | None] = mapped_column(String(100))
    subject_code: Mapped[str] = mapped_column(String(50), nullable=False)
    subject_title: Mapped[str | None] = mapped_column(String(255))
    units: Mapped[float | None] = mapped_column(Numeric(4, 1))
    teacher: Mapped[str | None] = mapped_column(String(255))
    enrollment_status: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("section_id", "subject_id", "semester", name="uq_study_load_section_subject_semester"),
    )


class UserAssignment(db.Model):
    """Student enrolment in a section."""
    __tablename__ = "user_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id: Mapped[int | None] = mapped_column(ForeignKey("sections.id", ondelete="SET NULL"), index=True)
    year_level: Mapped[str | None] = mapped_column(String(32))
    semester: Mapped[str | None] = mapped_column(String(32), default="1st Semester")
    student_status: Mapped[str] = mapped_column(String(32), nullable=False, default="Regular")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=AssignmentStatus.ACTIVE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")
    section = relationship("Section")


class TeacherEvaluation(db.Model):
    __tablename__ = "teacher_evaluations"

    id: Mapped[int] = mapped_column(primary_key=True)
    teacher_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    rating: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..5
    semester: Mapped[str | None] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    entity: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer)
    payload: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
