# school_portal/services/announcement_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError
from ..models.admin import Admin
from ..models.announcement import Announcement

logger = logging.getLogger(__name__)


class AnnouncementService(BaseService[Announcement]):
    def __init__(self, db: AsyncSession):
        super().__init__(Announcement, db)

    def _with_author(self, stmt):
        return stmt.options(selectinload(Announcement.admin).selectinload(Admin.user))

    @staticmethod
    def _active(stmt):
        now = datetime.now(timezone.utc)
        return stmt.where(or_(Announcement.expires_at.is_(None), Announcement.expires_at > now))

    async def list_announcements(
        self,
        search: Optional[str] = None,
        important: Optional[bool] = None,
        active_only: bool = False,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        stmt = self._with_author(select(Announcement))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Announcement.title.ilike(pattern), Announcement.content.ilike(pattern)))
        if important is not None:
            stmt = stmt.where(Announcement.important == important)
        if active_only:
            stmt = self._active(stmt)
        return await self.get_paginated(stmt, page=page, limit=limit, order_by="created_at", sort="desc")

    async def latest_active(self, limit: int = 3) -> List[Announcement]:
        stmt = self._active(self._with_author(select(Announcement)))
        result = await self.db.execute(stmt.order_by(Announcement.created_at.desc()).limit(limit))
        return result.scalars().all()

    async def get_with_details(self, announcement_id: Any) -> Optional[Announcement]:
        stmt = self._with_author(
            select(Announcement).where(Announcement.id == announcement_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_announcement(self, admin: Admin, data: Dict[str, Any]) -> Announcement:
        try:
            announcement = await self.create(dict(data, admin_id=admin.id))
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create announcement {data['title']}: {e}")
            raise
        logger.info(f"Admin {admin.id} posted announcement {announcement.id}")
        return await self.get_with_details(announcement.id)

    async def update_announcement(self, announcement_id: UUID, data: Dict[str, Any]) -> Announcement:
        announcement = await self.get(announcement_id)
        if not announcement:
            raise NotFoundError("Announcement", announcement_id)

        # expires_at may be cleared explicitly
        changes = {k: v for k, v in data.items() if v is not None or k == "expires_at"}
        try:
            await self.update(announcement.id, changes)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update announcement {announcement_id}: {e}")
            raise
        return await self.get_with_details(announcement.id)

    async def delete_announcement(self, announcement_id: UUID) -> None:
        if not await self.delete(announcement_id):
            raise NotFoundError("Announcement", announcement_id)
