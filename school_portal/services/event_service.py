# school_portal/services/event_service.py
from typing import Any, Dict, Optional
from uuid import UUID
from datetime import datetime
import logging

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from .assignment_service import as_utc
from ..core.exceptions import NotFoundError, ValidationException
from ..models.admin import Admin
from ..models.event import Event, EventCategory, EventStatus

logger = logging.getLogger(__name__)


class EventService(BaseService[Event]):
    def __init__(self, db: AsyncSession):
        super().__init__(Event, db)

    def _with_organizer(self, stmt):
        return stmt.options(selectinload(Event.admin).selectinload(Admin.user))

    async def list_events(
        self,
        search: Optional[str] = None,
        category: Optional[EventCategory] = None,
        status: Optional[EventStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        stmt = self._with_organizer(select(Event))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
        if category:
            stmt = stmt.where(Event.category == category)
        if status:
            stmt = stmt.where(Event.status == status)
        # any event touching the requested window
        if start_date:
            stmt = stmt.where(Event.end_date >= start_date)
        if end_date:
            stmt = stmt.where(Event.start_date <= end_date)
        return await self.get_paginated(stmt, page=page, limit=limit, order_by="start_date")

    async def get_with_details(self, event_id: Any) -> Optional[Event]:
        stmt = self._with_organizer(
            select(Event).where(Event.id == event_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _check_dates(start: datetime, end: datetime):
        if as_utc(end) < as_utc(start):
            raise ValidationException("End date cannot be before start date")

    async def create_event(self, admin: Admin, data: Dict[str, Any]) -> Event:
        self._check_dates(data["start_date"], data["end_date"])
        values = dict(data, admin_id=admin.id, class_ids=[str(c) for c in data.get("class_ids") or []])
        try:
            event = await self.create(values)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create event {data['title']}: {e}")
            raise
        logger.info(f"Admin {admin.id} created event {event.id}")
        return await self.get_with_details(event.id)

    async def update_event(self, event_id: UUID, data: Dict[str, Any]) -> Event:
        event = await self.get(event_id)
        if not event:
            raise NotFoundError("Event", event_id)

        changes = {
            k: v for k, v in data.items()
            if v is not None or k in ("description", "location")
        }
        self._check_dates(
            changes.get("start_date", event.start_date),
            changes.get("end_date", event.end_date),
        )
        if "class_ids" in changes:
            changes["class_ids"] = [str(c) for c in changes["class_ids"]]

        try:
            await self.update(event.id, changes)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update event {event_id}: {e}")
            raise
        return await self.get_with_details(event.id)

    async def delete_event(self, event_id: UUID) -> None:
        if not await self.delete(event_id):
            raise NotFoundError("Event", event_id)
