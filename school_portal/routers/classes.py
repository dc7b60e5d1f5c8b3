# school_portal/routers/classes.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, require_admin
from ..core.exceptions import NotFoundError
from ..models.class_model import ClassModel
from ..schemas.class_schemas import ClassCreate, ClassUpdate
from ..schemas.timetable_schemas import ClassSlotCreate
from ..services.class_service import ClassService
from ..services.timetable_service import TimetableService
from .timetable import format_entry

router = APIRouter(prefix="/api/classes", tags=["Classes"])


def format_student_brief(student) -> dict:
    return {
        "id": str(student.id),
        "user_id": str(student.user_id),
        "roll_number": student.roll_number,
        "name": student.user.name,
        "email": student.user.email,
        "image": student.user.image,
    }


def format_class_detail(class_obj: ClassModel) -> dict:
    teacher = class_obj.teacher
    return {
        "id": str(class_obj.id),
        "name": class_obj.name,
        "academic_year": class_obj.academic_year,
        "room_number": class_obj.room_number,
        "section": class_obj.section,
        "teacher": {
            "id": str(teacher.id),
            "user_id": str(teacher.user_id),
            "name": teacher.user.name,
            "email": teacher.user.email,
            "image": teacher.user.image,
        } if teacher else None,
        "students": [format_student_brief(s) for s in class_obj.students],
        "student_count": len(class_obj.students),
        "created_at": class_obj.created_at,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_classes(
    search: Optional[str] = Query(None),
    order_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    rows = await service.list_classes(search=search, order_by=order_by, order=order)

    formatted_classes = [
        {
            "id": str(class_obj.id),
            "name": class_obj.name,
            "teacher_id": str(class_obj.teacher_id) if class_obj.teacher_id else None,
            "teacher_name": class_obj.teacher.user.name if class_obj.teacher else None,
            "student_count": student_count,
            "academic_year": class_obj.academic_year,
            "room_number": class_obj.room_number,
            "section": class_obj.section,
            "created_at": class_obj.created_at,
        }
        for class_obj, student_count in rows
    ]
    return {"classes": formatted_classes, "count": len(formatted_classes)}


@router.post("", response_model=dict, dependencies=[Depends(require_admin)])
async def create_class(
    class_data: ClassCreate,
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    class_obj = await service.create_class(class_data.model_dump())
    return format_class_detail(class_obj)


@router.get("/{class_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    class_obj = await service.get_with_details(class_id)
    if not class_obj:
        raise NotFoundError("Class", class_id)
    return format_class_detail(class_obj)


@router.put("/{class_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_class(
    class_id: UUID,
    class_data: ClassUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    class_obj = await service.update_class(class_id, class_data.model_dump(exclude_unset=True))
    return format_class_detail(class_obj)


@router.delete("/{class_id}", dependencies=[Depends(require_admin)])
async def delete_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """Delete a class together with its timetable, attendance and assignments"""
    service = ClassService(db)
    await service.delete_class(class_id)
    return {"message": "Class deleted successfully", "id": str(class_id)}


@router.get("/{class_id}/students", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_class_students(
    class_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = ClassService(db)
    students = await service.get_students(class_id)
    return {"students": [format_student_brief(s) for s in students], "count": len(students)}


@router.get("/{class_id}/timetable", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_class_timetable(
    class_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    class_obj, entries = await service.class_timetable(class_id)
    return {
        "class": {"id": str(class_obj.id), "name": class_obj.name},
        "timetable_entries": [format_entry(e) for e in entries],
        "count": len(entries),
    }


@router.post("/{class_id}/timetable", response_model=dict, dependencies=[Depends(require_admin)])
async def add_class_lesson(
    class_id: UUID,
    slot: ClassSlotCreate,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    await service.require_owner(ClassModel, class_id, "Class")
    entry = await service.create_entry(dict(slot.model_dump(), class_id=class_id))
    return format_entry(entry)
