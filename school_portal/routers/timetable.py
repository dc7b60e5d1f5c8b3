# school_portal/routers/timetable.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, require_admin
from ..core.exceptions import NotFoundError
from ..models.timetable import TimetableEntry
from ..schemas.timetable_schemas import TimetableEntryCreate, TimetableEntryUpdate
from ..services.timetable_service import TimetableService

router = APIRouter(prefix="/api/timetable", tags=["Timetable"])

TIME_FORMAT = "%H:%M:%S"


def format_entry(entry: TimetableEntry) -> dict:
    return {
        "id": str(entry.id),
        "day_of_week": entry.day_of_week,
        "start_time": entry.start_time.strftime(TIME_FORMAT),
        "end_time": entry.end_time.strftime(TIME_FORMAT),
        "class_id": str(entry.class_id),
        "class_name": entry.class_ref.name,
        "subject_id": str(entry.subject_id),
        "subject_name": entry.subject.name,
        "subject_code": entry.subject.code,
        "teacher_id": str(entry.teacher_id),
        "teacher_name": entry.teacher.user.name,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_timetable(
    class_id: Optional[UUID] = Query(None),
    teacher_id: Optional[UUID] = Query(None),
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    db: AsyncSession = Depends(get_db)
):
    """Entries ordered by day and start time"""
    service = TimetableService(db)
    entries = await service.list_entries(class_id, teacher_id, day_of_week)
    return {"timetable_entries": [format_entry(e) for e in entries], "count": len(entries)}


@router.post("", response_model=dict, dependencies=[Depends(require_admin)])
async def create_entry(
    entry_data: TimetableEntryCreate,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    entry = await service.create_entry(entry_data.model_dump())
    return format_entry(entry)


@router.get("/{entry_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    entry = await service.get_with_details(entry_id)
    if not entry:
        raise NotFoundError("Timetable entry", entry_id)
    return format_entry(entry)


@router.patch("/{entry_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_entry(
    entry_id: UUID,
    entry_data: TimetableEntryUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    entry = await service.update_entry(entry_id, entry_data.model_dump(exclude_unset=True))
    return format_entry(entry)


@router.delete("/{entry_id}", dependencies=[Depends(require_admin)])
async def delete_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = TimetableService(db)
    await service.delete_entry(entry_id)
    return {"message": "Timetable entry deleted successfully", "id": str(entry_id)}
