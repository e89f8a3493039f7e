from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class ScheduleIn(BaseModel):
    section_id: int
    subject_id: int
    # optional for "00:00"-"00:00" entries
    day_of_week: Optional[str] = None
    start_time: str = Field(min_length=4, max_length=8)
    end_time: str = Field(min_length=4, max_length=8)
    building: Optional[str] = None
    room: Optional[str | int] = None
    floor: Optional[int] = None
    school_year: Optional[str] = Field(None, pattern=r"^\d{4}-\d{4}$")
    semester: Optional[str] = Field(None, max_length=32)


class CheckIn(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str
    teacher_id: Optional[int] = None
    subject_id: Optional[int] = None
    section_id: Optional[int] = None
    exclude_schedule_id: Optional[int] = None
