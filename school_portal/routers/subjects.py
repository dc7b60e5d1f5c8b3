# school_portal/routers/subjects.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, require_admin
from ..core.exceptions import NotFoundError
from ..schemas.subject_schemas import SubjectCreate, SubjectOut, SubjectUpdate
from ..services.subject_service import SubjectService

router = APIRouter(prefix="/api/subjects", tags=["Subjects"])


@router.get("", dependencies=[Depends(get_current_session)])
async def list_subjects(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    service = SubjectService(db)
    result = await service.list_subjects(search=search, page=page, limit=limit)
    return {
        "subjects": [SubjectOut.model_validate(s).model_dump(mode="json") for s in result["items"]],
        "meta": result["meta"],
    }


@router.post("", response_model=SubjectOut, dependencies=[Depends(require_admin)])
async def create_subject(
    subject_data: SubjectCreate,
    db: AsyncSession = Depends(get_db)
):
    """Create a subject; name and code must be unique ignoring case"""
    service = SubjectService(db)
    return await service.create_subject(subject_data.model_dump())


@router.get("/{subject_id}", response_model=SubjectOut, dependencies=[Depends(get_current_session)])
async def get_subject(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = SubjectService(db)
    subject = await service.get(subject_id)
    if not subject:
        raise NotFoundError("Subject", subject_id)
    return subject


@router.patch("/{subject_id}", response_model=SubjectOut, dependencies=[Depends(require_admin)])
async def update_subject(
    subject_id: UUID,
    subject_data: SubjectUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = SubjectService(db)
    return await service.update_subject(subject_id, subject_data.model_dump(exclude_unset=True))


@router.delete("/{subject_id}", dependencies=[Depends(require_admin)])
async def delete_subject(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = SubjectService(db)
    await service.delete_subject(subject_id)
    return {"message": "Subject deleted successfully", "id": str(subject_id)}
