# school_portal/schemas/attendance_schemas.py
from typing import List, Optional
from datetime import date
from uuid import UUID
from pydantic import BaseModel

from ..models.attendance import AttendanceStatus


class AttendanceMark(BaseModel):
    # incomplete rows are skipped rather than rejected
    student_id: Optional[UUID] = None
    status: Optional[AttendanceStatus] = None
    remarks: Optional[str] = None


class AttendanceSessionCreate(BaseModel):
    class_id: UUID
    date: date
    attendances: List[AttendanceMark]


class AttendanceSessionUpdate(BaseModel):
    attendances: List[AttendanceMark]
