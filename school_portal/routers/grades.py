# school_portal/routers/grades.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, get_current_teacher
from ..core.security import SessionData
from ..models.grade import Grade
from ..models.teacher import Teacher
from ..schemas.grade_schemas import GradeCreate
from ..services.grade_service import GradeService

router = APIRouter(prefix="/api/grades", tags=["Grades"])


def format_grade(grade: Grade) -> dict:
    return {
        "id": str(grade.id),
        "name": grade.name,
        "score": grade.score,
        "max_score": grade.max_score,
        "percentage": round(grade.score / grade.max_score * 100, 1) if grade.max_score else None,
        "remarks": grade.remarks,
        "exam_date": grade.exam_date.isoformat() if grade.exam_date else None,
        "student_id": str(grade.student_id),
        "student_name": grade.student.user.name,
        "subject_id": str(grade.subject_id),
        "subject_name": grade.subject.name,
        "teacher_id": str(grade.teacher_id),
        "created_at": grade.created_at,
    }


@router.get("", response_model=dict)
async def list_grades(
    student_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Grades scoped to the caller's role"""
    service = GradeService(db)
    grades = await service.list_grades(session, student_id=student_id, subject_id=subject_id)
    return {"grades": [format_grade(g) for g in grades], "count": len(grades)}


@router.post("", response_model=dict)
async def record_grade(
    grade_data: GradeCreate,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = GradeService(db)
    grade = await service.record_grade(teacher, grade_data.model_dump())
    return format_grade(grade)


@router.delete("/{grade_id}")
async def delete_grade(
    grade_id: UUID,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = GradeService(db)
    await service.delete_grade(grade_id, teacher)
    return {"message": "Grade deleted successfully", "id": str(grade_id)}
