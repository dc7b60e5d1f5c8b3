# school_portal/routers/attendance.py
from typing import Optional
from uuid import UUID
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import acting_teacher, get_current_session
from ..core.exceptions import NotFoundError
from ..models.attendance import AttendanceSession
from ..models.teacher import Teacher
from ..schemas.attendance_schemas import AttendanceSessionCreate, AttendanceSessionUpdate
from ..services.attendance_service import AttendanceService, status_counts

router = APIRouter(prefix="/api/attendance/sessions", tags=["Attendance"])


def format_session(session: AttendanceSession, with_records: bool = False) -> dict:
    data = {
        "id": str(session.id),
        "class_id": str(session.class_id),
        "class_name": session.class_ref.name,
        "date": session.date.isoformat(),
        **status_counts(session),
    }
    if with_records:
        data["attendances"] = [
            {
                "id": str(record.id),
                "student_id": str(record.student_id),
                "student_name": record.student.user.name,
                "roll_number": record.student.roll_number,
                "status": record.status.value,
                "remarks": record.remarks,
            }
            for record in session.attendances
        ]
    return data


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_sessions(
    class_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = AttendanceService(db)
    result = await service.list_sessions(class_id, start_date, end_date, page=page, limit=limit)
    return {"sessions": [format_session(s) for s in result["items"]], "meta": result["meta"]}


@router.post("", response_model=dict)
async def create_session(
    session_data: AttendanceSessionCreate,
    teacher: Optional[Teacher] = Depends(acting_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Record a class register; admins and the class teacher only"""
    service = AttendanceService(db)
    session = await service.create_session(
        session_data.class_id,
        session_data.date,
        [mark.model_dump() for mark in session_data.attendances],
        teacher=teacher,
    )
    return format_session(session, with_records=True)


@router.get("/{session_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = AttendanceService(db)
    session = await service.get_with_records(session_id)
    if not session:
        raise NotFoundError("Attendance session", session_id)
    return format_session(session, with_records=True)


@router.patch("/{session_id}", response_model=dict)
async def update_session(
    session_id: UUID,
    session_data: AttendanceSessionUpdate,
    teacher: Optional[Teacher] = Depends(acting_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AttendanceService(db)
    session = await service.update_session(
        session_id, [mark.model_dump() for mark in session_data.attendances], teacher=teacher
    )
    return format_session(session, with_records=True)


@router.delete("/{session_id}")
async def delete_session(
    session_id: UUID,
    teacher: Optional[Teacher] = Depends(acting_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AttendanceService(db)
    await service.delete_session(session_id, teacher=teacher)
    return {"message": "Attendance session deleted successfully", "id": str(session_id)}
