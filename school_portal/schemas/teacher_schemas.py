# school_portal/schemas/teacher_schemas.py
from typing import List, Optional
from uuid import UUID
from pydantic import AliasChoices, BaseModel, EmailStr, Field


class TeacherCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)
    qualification: Optional[str] = None
    designation: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None


class TeacherUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    qualification: Optional[str] = None
    designation: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None


class TeacherClassesUpdate(BaseModel):
    # the admin UI posts camelCase
    class_ids: List[UUID] = Field(..., validation_alias=AliasChoices("class_ids", "classIds"))
