# school_portal/schemas/grade_schemas.py
from typing import Optional
from datetime import date
from uuid import UUID
from pydantic import BaseModel, Field


class GradeCreate(BaseModel):
    student_id: UUID
    subject_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    score: float = Field(..., ge=0)
    max_score: float = Field(..., gt=0)
    remarks: Optional[str] = None
    exam_date: Optional[date] = None
