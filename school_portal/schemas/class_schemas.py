# school_portal/schemas/class_schemas.py
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .subject_schemas import not_blank


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    teacher_id: Optional[UUID] = None
    academic_year: Optional[str] = Field(default=None, max_length=10)
    room_number: Optional[str] = Field(default=None, max_length=20)
    section: Optional[str] = Field(default=None, max_length=10)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return not_blank(v)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    teacher_id: Optional[UUID] = None
    academic_year: Optional[str] = Field(default=None, max_length=10)
    room_number: Optional[str] = Field(default=None, max_length=20)
    section: Optional[str] = Field(default=None, max_length=10)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return not_blank(v)
