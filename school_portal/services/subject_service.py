# school_portal/services/subject_service.py
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError
from ..models.assignment import Assignment
from ..models.exam import ExamResult, ExamSchedule
from ..models.grade import Grade
from ..models.subject import Subject
from ..models.timetable import TimetableEntry

logger = logging.getLogger(__name__)


class SubjectService(BaseService[Subject]):
    def __init__(self, db: AsyncSession):
        super().__init__(Subject, db)

    async def list_subjects(self, search: Optional[str] = None, page: int = 1, limit: int = 50):
        stmt = select(Subject)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Subject.name.ilike(pattern), Subject.code.ilike(pattern)))
        return await self.get_paginated(stmt, page=page, limit=limit, order_by="name")

    async def _find_clash(self, name: Optional[str], code: Optional[str], exclude_id: Any = None) -> Optional[Subject]:
        """Subject names and codes are unique regardless of case"""
        conditions = []
        if name:
            conditions.append(func.lower(Subject.name) == name.strip().lower())
        if code:
            conditions.append(func.lower(Subject.code) == code.strip().lower())
        if not conditions:
            return None

        stmt = select(Subject).where(or_(*conditions))
        if exclude_id is not None:
            stmt = stmt.where(Subject.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def create_subject(self, data: Dict[str, Any]) -> Subject:
        if await self._find_clash(data["name"], data["code"]):
            raise ConflictError("A subject with this name or code already exists")

        try:
            subject = await self.create({
                "name": data["name"].strip(),
                "code": data["code"].strip(),
                "description": data.get("description"),
            })
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create subject {data['code']}: {e}")
            raise

        logger.info(f"Created subject {subject.id} ({subject.code})")
        return subject

    async def update_subject(self, subject_id: UUID, data: Dict[str, Any]) -> Subject:
        subject = await self.get(subject_id)
        if not subject:
            raise NotFoundError("Subject", subject_id)

        if await self._find_clash(data.get("name"), data.get("code"), exclude_id=subject.id):
            raise ConflictError("A subject with this name or code already exists")

        changes = {
            k: v.strip() if k != "description" else v
            for k, v in data.items()
            if v is not None or k == "description"
        }
        try:
            return await self.update(subject.id, changes)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update subject {subject_id}: {e}")
            raise

    async def delete_subject(self, subject_id: UUID) -> None:
        subject = await self.get(subject_id)
        if not subject:
            raise NotFoundError("Subject", subject_id)

        in_use = 0
        for model in (TimetableEntry, Assignment, Grade, ExamSchedule, ExamResult):
            stmt = select(func.count()).select_from(model).where(model.subject_id == subject.id)
            in_use += (await self.db.execute(stmt)).scalar() or 0
        if in_use:
            raise ConflictError(
                "Cannot delete subject with existing relationships",
                {"details": "This subject is being used in timetables, assignments, grades or exams"},
            )

        await self.delete(subject.id)
        logger.info(f"Deleted subject {subject_id}")
