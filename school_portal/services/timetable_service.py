# school_portal/services/timetable_service.py
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from datetime import time
import logging

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError, ValidationException
from ..models.class_model import ClassModel
from ..models.subject import Subject
from ..models.teacher import Teacher
from ..models.timetable import TimetableEntry

logger = logging.getLogger(__name__)


class TimetableService(BaseService[TimetableEntry]):
    def __init__(self, db: AsyncSession):
        super().__init__(TimetableEntry, db)

    def _with_relations(self, stmt):
        return stmt.options(
            selectinload(TimetableEntry.class_ref),
            selectinload(TimetableEntry.subject),
            selectinload(TimetableEntry.teacher).selectinload(Teacher.user),
        )

    async def list_entries(
        self,
        class_id: Optional[UUID] = None,
        teacher_id: Optional[UUID] = None,
        day_of_week: Optional[int] = None,
    ) -> List[TimetableEntry]:
        stmt = self._with_relations(select(TimetableEntry)).order_by(
            TimetableEntry.day_of_week.asc(), TimetableEntry.start_time.asc()
        )
        if class_id:
            stmt = stmt.where(TimetableEntry.class_id == class_id)
        if teacher_id:
            stmt = stmt.where(TimetableEntry.teacher_id == teacher_id)
        if day_of_week is not None:
            stmt = stmt.where(TimetableEntry.day_of_week == day_of_week)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def require_owner(self, model, owner_id: UUID, label: str, *options):
        owner = await self.db.get(model, owner_id, options=list(options))
        if not owner:
            raise NotFoundError(label, owner_id)
        return owner

    async def teacher_timetable(self, teacher_id: UUID) -> Tuple[Teacher, List[TimetableEntry]]:
        teacher = await self.require_owner(Teacher, teacher_id, "Teacher", selectinload(Teacher.user))
        return teacher, await self.list_entries(teacher_id=teacher.id)

    async def class_timetable(self, class_id: UUID) -> Tuple[ClassModel, List[TimetableEntry]]:
        class_obj = await self.require_owner(ClassModel, class_id, "Class")
        return class_obj, await self.list_entries(class_id=class_obj.id)

    async def get_with_details(self, entry_id: Any) -> Optional[TimetableEntry]:
        stmt = self._with_relations(
            select(TimetableEntry).where(TimetableEntry.id == entry_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _check_refs(self, data: Dict[str, Any]):
        for key, model, label in (
            ("class_id", ClassModel, "Class"),
            ("subject_id", Subject, "Subject"),
            ("teacher_id", Teacher, "Teacher"),
        ):
            if data.get(key) is not None and not await self.db.get(model, data[key]):
                raise NotFoundError(label, data[key])

    async def _check_slot(
        self,
        class_id: UUID,
        teacher_id: UUID,
        day_of_week: int,
        start_time: time,
        end_time: time,
        exclude_id: Any = None,
    ):
        """Reject a slot that overlaps another lesson of the same teacher or class"""
        if end_time <= start_time:
            raise ValidationException("End time must be after start time")

        stmt = select(TimetableEntry).where(
            TimetableEntry.day_of_week == day_of_week,
            or_(TimetableEntry.teacher_id == teacher_id, TimetableEntry.class_id == class_id),
            TimetableEntry.start_time < end_time,
            TimetableEntry.end_time > start_time,
        )
        if exclude_id is not None:
            stmt = stmt.where(TimetableEntry.id != exclude_id)

        clash = (await self.db.execute(stmt.limit(1))).scalar_one_or_none()
        if clash:
            who = "Teacher" if clash.teacher_id == teacher_id else "Class"
            raise ConflictError(
                f"{who} already has a lesson at this time",
                {"conflicting_entry_id": str(clash.id)},
            )

    async def create_entry(self, data: Dict[str, Any]) -> TimetableEntry:
        await self._check_refs(data)
        await self._check_slot(
            data["class_id"], data["teacher_id"], data["day_of_week"],
            data["start_time"], data["end_time"],
        )
        try:
            entry = await self.create(data)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create timetable entry: {e}")
            raise
        logger.info(f"Created timetable entry {entry.id}")
        return await self.get_with_details(entry.id)

    async def update_entry(self, entry_id: UUID, data: Dict[str, Any]) -> TimetableEntry:
        entry = await self.get(entry_id)
        if not entry:
            raise NotFoundError("Timetable entry", entry_id)

        changes = {k: v for k, v in data.items() if v is not None}
        await self._check_refs(changes)
        merged = {
            key: changes.get(key, getattr(entry, key))
            for key in ("class_id", "teacher_id", "day_of_week", "start_time", "end_time")
        }
        await self._check_slot(exclude_id=entry.id, **merged)

        try:
            await self.update(entry.id, changes)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update timetable entry {entry_id}: {e}")
            raise
        return await self.get_with_details(entry.id)

    async def delete_entry(self, entry_id: UUID) -> None:
        if not await self.delete(entry_id):
            raise NotFoundError("Timetable entry", entry_id)
