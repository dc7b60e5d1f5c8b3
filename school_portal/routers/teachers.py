# school_portal/routers/teachers.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, get_current_teacher, require_admin
from ..models.teacher import Teacher
from ..schemas.teacher_schemas import TeacherClassesUpdate, TeacherCreate, TeacherUpdate
from ..schemas.timetable_schemas import TeacherSlotCreate
from ..services.dashboard_service import DashboardService
from ..services.teacher_service import TeacherService
from ..services.timetable_service import TimetableService
from .timetable import format_entry

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])


def format_class_brief(class_obj) -> dict:
    return {
        "id": str(class_obj.id),
        "name": class_obj.name,
        "section": class_obj.section,
        "academic_year": class_obj.academic_year,
    }


def format_teacher_detail(teacher: Teacher) -> dict:
    return {
        "id": str(teacher.id),
        "user_id": str(teacher.user_id),
        "name": teacher.user.name,
        "email": teacher.user.email,
        "image": teacher.user.image,
        "qualification": teacher.qualification,
        "designation": teacher.designation,
        "phone_number": teacher.phone_number,
        "bio": teacher.bio,
        "classes": [format_class_brief(c) for c in teacher.classes],
        "created_at": teacher.created_at,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_teachers(
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Teachers ordered by name, optionally filtered by name"""
    service = TeacherService(db)
    teachers = await service.list_teachers(search)

    formatted_teachers = [
        {
            "id": str(teacher.id),
            "user_id": str(teacher.user_id),
            "name": teacher.user.name,
            "email": teacher.user.email,
            "image": teacher.user.image,
            "designation": teacher.designation,
            "phone_number": teacher.phone_number,
        }
        for teacher in teachers
    ]
    return {"teachers": formatted_teachers, "count": len(formatted_teachers)}


@router.post("", response_model=dict, dependencies=[Depends(require_admin)])
async def create_teacher(
    teacher_data: TeacherCreate,
    db: AsyncSession = Depends(get_db)
):
    service = TeacherService(db)
    teacher = await service.create_teacher(teacher_data.model_dump())
    return format_teacher_detail(teacher)


@router.get("/dashboard", response_model=dict)
async def teacher_dashboard(
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Today's lessons, class roster sizes and recent activity of the signed-in teacher"""
    service = DashboardService(db)
    return await service.teacher_dashboard(teacher)


@router.get("/{teacher_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def get_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    """Look a teacher up by profile id or by user id"""
    service = TeacherService(db)
    teacher = await service.resolve(teacher_id)
    return format_teacher_detail(teacher)


@router.put("/{teacher_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_teacher(
    teacher_id: UUID,
    teacher_data: TeacherUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = TeacherService(db)
    teacher = await service.update_teacher(teacher_id, teacher_data.model_dump(exclude_unset=True))
    return format_teacher_detail(teacher)


@router.delete("/{teacher_id}", dependencies=[Depends(require_admin)])
async def delete_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TeacherService(db)
    await service.delete_teacher(teacher_id)
    return {"message": "Teacher deleted successfully", "id": str(teacher_id)}


@router.get("/{teacher_id}/classes", response_model=dict, dependencies=[Depends(require_admin)])
async def get_teacher_classes(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TeacherService(db)
    classes = await service.get_classes(teacher_id)
    return {"classes": [format_class_brief(c) for c in classes]}


@router.put("/{teacher_id}/classes", response_model=dict, dependencies=[Depends(require_admin)])
async def reassign_teacher_classes(
    teacher_id: UUID,
    payload: TeacherClassesUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Replace the set of classes the teacher owns; 409 when another teacher owns one"""
    service = TeacherService(db)
    teacher = await service.reassign_classes(teacher_id, payload.class_ids)
    return format_teacher_detail(teacher)


@router.get("/{teacher_id}/timetable", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_teacher_timetable(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    teacher, entries = await service.teacher_timetable(teacher_id)
    return {
        "teacher": {"id": str(teacher.id), "name": teacher.user.name},
        "timetable_entries": [format_entry(e) for e in entries],
        "count": len(entries),
    }


@router.post("/{teacher_id}/timetable", response_model=dict, dependencies=[Depends(require_admin)])
async def add_teacher_lesson(
    teacher_id: UUID,
    slot: TeacherSlotCreate,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    await service.require_owner(Teacher, teacher_id, "Teacher")
    entry = await service.create_entry(dict(slot.model_dump(), teacher_id=teacher_id))
    return format_entry(entry)
