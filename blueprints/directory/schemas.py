from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field, field_validator

# ---------- Sections ----------
class SectionIn(BaseModel):
    section_name: str = Field(min_length=1, max_length=100)
    grade_level: str = Field(min_length=1, max_length=32)
    school_year: Optional[str] = Field(None, pattern=r"^\d{4}-\d{4}$")
    course: Optional[str] = Field(None, max_length=100)
    major: Optional[str] = Field(None, max_length=100)

    @field_validator("section_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

# ---------- Subjects ----------
class SubjectIn(BaseModel):
    subject_code: str = Field(min_length=1, max_length=50)
    subject_name: str = Field(min_length=1, max_length=255)
    units: float = Field(gt=0, le=12, default=3)
    course: str = Field(min_length=1, max_length=100)
    major: Optional[str] = Field(None, max_length=100)
    year_level: int = Field(ge=1, le=6, default=1)
    semester: Optional[str] = Field(None, max_length=32)

    @field_validator("subject_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        return v.strip().upper()

# ---------- Buildings ----------
class BuildingIn(BaseModel):
    building_name: str = Field(min_length=1, max_length=255)
    num_floors: int = Field(ge=1, default=1)
    rooms_per_floor: int = Field(ge=1, default=1)
    description: Optional[str] = None

# ---------- Teacher assignments ----------
class TeacherAssignmentIn(BaseModel):
    teacher_id: int
    subject_id: int
    section_id: Optional[int] = None
    school_year: Optional[str] = Field(None, pattern=r"^\d{4}-\d{4}$")
    semester: Optional[str] = Field(None, max_length=32)

# ---------- Student enrolments ----------
class UserAssignmentIn(BaseModel):
    user_id: int
    section_id: int
    year_level: Optional[str] = Field(None, max_length=32)
    semester: Optional[str] = Field(None, max_length=32)
    student_status: str = Field("Regular", pattern="^(Regular|Irregular)$")

# ---------- Section rooms ----------
class SectionRoomIn(BaseModel):
    section_id: int
    building: str = Field(min_length=1, max_length=255)
    # checked by the room resolver
    room: str | int
    floor: Optional[int] = None
    school_year: Optional[str] = Field(None, pattern=r"^\d{4}-\d{4}$")

# ---------- Study load ----------
class EnrollmentStatusIn(BaseModel):
    enrollment_status: str = Field(min_length=1, max_length=32)

class ClearLoadIn(BaseModel):
    section_id: int
