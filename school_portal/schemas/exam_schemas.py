# school_portal/schemas/exam_schemas.py
from typing import List, Optional
from datetime import date, time
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .timetable_schemas import wall_clock
from ..models.exam import ExamStatus


class ExamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: date
    end_date: date
    status: ExamStatus = ExamStatus.UPCOMING
    class_ids: List[UUID] = Field(..., min_length=1)


class ExamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ExamStatus] = None
    class_ids: Optional[List[UUID]] = Field(default=None, min_length=1)


class ExamScheduleCreate(BaseModel):
    exam_id: UUID
    class_id: UUID
    subject_id: UUID
    date: date
    start_time: time
    end_time: time
    location: Optional[str] = Field(default=None, max_length=200)
    invigilator_ids: List[UUID] = []

    @field_validator('start_time', 'end_time')
    @classmethod
    def strip_offset(cls, v):
        return wall_clock(v)


class ExamResultEntry(BaseModel):
    student_id: UUID
    subject_id: UUID
    marks: float
    max_marks: float = Field(..., gt=0)
    grade: Optional[str] = Field(default=None, max_length=5)
    remarks: Optional[str] = None


class ExamResultsSave(BaseModel):
    """Marks for one exam; existing (student, subject) results are overwritten"""
    exam_id: UUID
    results: List[ExamResultEntry] = Field(..., min_length=1)
