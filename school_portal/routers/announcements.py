# school_portal/routers/announcements.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_admin, get_current_session, require_admin
from ..core.exceptions import NotFoundError
from ..core.security import SessionData
from ..models.admin import Admin
from ..models.announcement import Announcement
from ..models.user import UserRole
from ..schemas.announcement_schemas import AnnouncementCreate, AnnouncementUpdate
from ..services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/announcements", tags=["Announcements"])


def format_announcement(announcement: Announcement) -> dict:
    return {
        "id": str(announcement.id),
        "title": announcement.title,
        "content": announcement.content,
        "important": announcement.important,
        "expires_at": announcement.expires_at,
        "author": announcement.admin.user.name if announcement.admin else None,
        "admin_id": str(announcement.admin_id),
        "created_at": announcement.created_at,
        "updated_at": announcement.updated_at,
    }


@router.get("", response_model=dict)
async def list_announcements(
    search: Optional[str] = Query(None),
    important: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Newest first; expired announcements are only listed for admins"""
    service = AnnouncementService(db)
    result = await service.list_announcements(
        search=search,
        important=important,
        active_only=session.role != UserRole.ADMIN,
        page=page,
        limit=limit,
    )
    return {"announcements": [format_announcement(a) for a in result["items"]], "meta": result["meta"]}


@router.post("", response_model=dict)
async def create_announcement(
    announcement_data: AnnouncementCreate,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AnnouncementService(db)
    announcement = await service.create_announcement(admin, announcement_data.model_dump())
    return format_announcement(announcement)


@router.get("/{announcement_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = AnnouncementService(db)
    announcement = await service.get_with_details(announcement_id)
    if not announcement:
        raise NotFoundError("Announcement", announcement_id)
    return format_announcement(announcement)


@router.put("/{announcement_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_announcement(
    announcement_id: UUID,
    announcement_data: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = AnnouncementService(db)
    announcement = await service.update_announcement(
        announcement_id, announcement_data.model_dump(exclude_unset=True)
    )
    return format_announcement(announcement)


@router.delete("/{announcement_id}", dependencies=[Depends(require_admin)])
async def delete_announcement(
    announcement_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = AnnouncementService(db)
    await service.delete_announcement(announcement_id)
    return {"message": "Announcement deleted successfully", "id": str(announcement_id)}
