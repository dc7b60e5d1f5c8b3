# school_portal/routers/students.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, get_current_student, require_admin
from ..core.exceptions import NotFoundError
from ..models.student import Student
from ..schemas.student_schemas import StudentCreate, StudentUpdate
from ..services.dashboard_service import DashboardService
from ..services.student_service import StudentService

router = APIRouter(prefix="/api/students", tags=["Students"])


def format_student(student: Student) -> dict:
    return {
        "id": str(student.id),
        "user_id": str(student.user_id),
        "roll_number": student.roll_number,
        "name": student.user.name,
        "email": student.user.email,
        "image": student.user.image,
        "class_id": str(student.class_id) if student.class_id else None,
        "class_name": student.class_ref.name if student.class_ref else "Unassigned",
        "gender": student.gender,
        "date_of_birth": student.date_of_birth.isoformat() if student.date_of_birth else None,
        "address": student.address,
        "parent_name": student.parent_name,
        "parent_contact": student.parent_contact,
        "created_at": student.created_at,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_students(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    order_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    class_name: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Paginated students with search on name or roll number"""
    service = StudentService(db)
    result = await service.list_students(
        search=search,
        page=page,
        limit=limit,
        order_by=order_by,
        order=order,
        class_name=class_name,
        gender=gender,
    )
    return {
        "students": [format_student(s) for s in result["items"]],
        "meta": result["meta"],
    }


@router.post("", response_model=dict, dependencies=[Depends(require_admin)])
async def create_student(
    student_data: StudentCreate,
    db: AsyncSession = Depends(get_db)
):
    service = StudentService(db)
    student = await service.create_student(student_data.model_dump())
    return format_student(student)


@router.get("/dashboard", response_model=dict)
async def student_dashboard(
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    service = DashboardService(db)
    return await service.student_dashboard(student)


@router.get("/{student_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def get_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = StudentService(db)
    student = await service.get_with_details(student_id)
    if not student:
        raise NotFoundError("Student", student_id)
    return format_student(student)


@router.put("/{student_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_student(
    student_id: UUID,
    student_data: StudentUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = StudentService(db)
    student = await service.update_student(student_id, student_data.model_dump(exclude_unset=True))
    return format_student(student)


@router.delete("/{student_id}", dependencies=[Depends(require_admin)])
async def delete_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = StudentService(db)
    await service.delete_student(student_id)
    return {"message": "Student deleted successfully", "id": str(student_id)}
