# school_portal/schemas/student_schemas.py
from typing import Optional
from datetime import date
from pydantic import BaseModel, EmailStr, Field


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: Optional[str] = None
    class_name: Optional[str] = None
    roll_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_contact: Optional[str] = None


class StudentUpdate(StudentCreate):
    pass
