# school_portal/schemas/assignment_schemas.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from ..models.assignment import AssignmentStatus


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: datetime
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    class_id: UUID
    subject_id: UUID


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Optional[AssignmentStatus] = None
    class_id: Optional[UUID] = None
    subject_id: Optional[UUID] = None


class SubmissionCreate(BaseModel):
    content: Optional[str] = None


class SubmissionGrade(BaseModel):
    score: float = Field(..., ge=0)
    feedback: Optional[str] = None
