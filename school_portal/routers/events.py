# school_portal/routers/events.py
from typing import Optional
from uuid import UUID
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_admin, get_current_session, require_admin
from ..core.exceptions import NotFoundError
from ..models.admin import Admin
from ..models.event import Event, EventCategory, EventStatus
from ..schemas.event_schemas import EventCreate, EventUpdate
from ..services.event_service import EventService

router = APIRouter(prefix="/api/events", tags=["Events"])


def format_event(event: Event) -> dict:
    return {
        "id": str(event.id),
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "start_date": event.start_date,
        "end_date": event.end_date,
        "is_all_day": event.is_all_day,
        "category": event.category.value,
        "status": event.status.value,
        "class_ids": event.class_ids or [],
        "admin_id": str(event.admin_id),
        "organizer": event.admin.user.name if event.admin else None,
        "created_at": event.created_at,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_events(
    search: Optional[str] = Query(None),
    category: Optional[EventCategory] = Query(None),
    status: Optional[EventStatus] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = EventService(db)
    result = await service.list_events(
        search=search,
        category=category,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return {"events": [format_event(e) for e in result["items"]], "meta": result["meta"]}


@router.post("", response_model=dict)
async def create_event(
    event_data: EventCreate,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create an event organised by the signed-in admin"""
    service = EventService(db)
    event = await service.create_event(admin, event_data.model_dump())
    return format_event(event)


@router.get("/{event_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = EventService(db)
    event = await service.get_with_details(event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    return format_event(event)


@router.put("/{event_id}", response_model=dict, dependencies=[Depends(require_admin)])
async def update_event(
    event_id: UUID,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = EventService(db)
    event = await service.update_event(event_id, event_data.model_dump(exclude_unset=True))
    return format_event(event)


@router.delete("/{event_id}", dependencies=[Depends(require_admin)])
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = EventService(db)
    await service.delete_event(event_id)
    return {"message": "Event deleted successfully", "id": str(event_id)}
