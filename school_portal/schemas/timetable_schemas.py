# school_portal/schemas/timetable_schemas.py
from typing import Optional
from datetime import time
from uuid import UUID
from pydantic import BaseModel, Field, field_validator


def wall_clock(value: Optional[time]) -> Optional[time]:
    """Lessons are stored as naive wall-clock times; drop any offset sent with them"""
    if value is not None and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class TimetableSlot(BaseModel):
    subject_id: UUID
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_offset(cls, v):
        return wall_clock(v)


class TeacherSlotCreate(TimetableSlot):
    """Lesson added from a teacher's timetable; the teacher comes from the path"""
    class_id: UUID


class ClassSlotCreate(TimetableSlot):
    """Lesson added from a class timetable; the class comes from the path"""
    teacher_id: UUID


class TimetableEntryCreate(TimetableSlot):
    class_id: UUID
    teacher_id: UUID


class TimetableEntryUpdate(BaseModel):
    class_id: Optional[UUID] = None
    subject_id: Optional[UUID] = None
    teacher_id: Optional[UUID] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_offset(cls, v):
        return wall_clock(v)
