# school_portal/services/attendance_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import date
import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDenied
from ..models.attendance import Attendance, AttendanceSession, AttendanceStatus
from ..models.class_model import ClassModel
from ..models.student import Student
from ..models.teacher import Teacher

logger = logging.getLogger(__name__)


def status_counts(session: AttendanceSession) -> Dict[str, int]:
    counts = {status: 0 for status in AttendanceStatus}
    for record in session.attendances:
        counts[record.status] += 1
    return {
        "present_count": counts[AttendanceStatus.PRESENT],
        "absent_count": counts[AttendanceStatus.ABSENT],
        "late_count": counts[AttendanceStatus.LATE],
        "excused_count": counts[AttendanceStatus.EXCUSED],
        "total_count": len(session.attendances),
    }


class AttendanceService(BaseService[AttendanceSession]):
    def __init__(self, db: AsyncSession):
        super().__init__(AttendanceSession, db)

    def _with_records(self, stmt):
        return stmt.options(
            selectinload(AttendanceSession.class_ref),
            selectinload(AttendanceSession.attendances)
            .selectinload(Attendance.student)
            .selectinload(Student.user),
        )

    async def list_sessions(
        self,
        class_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        stmt = self._with_records(select(AttendanceSession))
        if class_id:
            stmt = stmt.where(AttendanceSession.class_id == class_id)
        if start_date:
            stmt = stmt.where(AttendanceSession.date >= start_date)
        if end_date:
            stmt = stmt.where(AttendanceSession.date <= end_date)
        return await self.get_paginated(stmt, page=page, limit=limit, order_by="date", sort="desc")

    async def get_with_records(self, session_id: Any) -> Optional[AttendanceSession]:
        stmt = self._with_records(
            select(AttendanceSession).where(AttendanceSession.id == session_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _authorize(self, class_id: UUID, teacher: Optional[Teacher]) -> ClassModel:
        """Admins pass teacher=None; teachers may only touch their own classes"""
        class_obj = await self.db.get(ClassModel, class_id)
        if not class_obj:
            raise NotFoundError("Class", class_id)
        if teacher is not None and class_obj.teacher_id != teacher.id:
            raise PermissionDenied("You are not authorized to manage attendance for this class")
        return class_obj

    async def _enrolled(self, class_id: UUID) -> set:
        result = await self.db.execute(select(Student.id).where(Student.class_id == class_id))
        return set(result.scalars().all())

    @staticmethod
    def _usable_marks(marks: List[Dict[str, Any]], enrolled: set) -> Dict[UUID, Dict[str, Any]]:
        # incomplete rows and students from other classes are skipped; the last mark wins
        usable = {}
        for mark in marks:
            if not mark.get("student_id") or not mark.get("status"):
                continue
            if mark["student_id"] not in enrolled:
                continue
            usable[mark["student_id"]] = mark
        return usable

    async def create_session(
        self,
        class_id: UUID,
        session_date: date,
        marks: List[Dict[str, Any]],
        teacher: Optional[Teacher] = None,
    ) -> AttendanceSession:
        class_obj = await self._authorize(class_id, teacher)
        usable = self._usable_marks(marks, await self._enrolled(class_obj.id))

        try:
            session = AttendanceSession(class_id=class_obj.id, date=session_date)
            self.db.add(session)
            for student_id, mark in usable.items():
                session.attendances.append(Attendance(
                    student_id=student_id,
                    status=mark["status"],
                    remarks=mark.get("remarks"),
                ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create attendance session for class {class_id}: {e}")
            raise

        logger.info(f"Recorded attendance session {session.id} with {len(usable)} records")
        return await self.get_with_records(session.id)

    async def update_session(
        self,
        session_id: UUID,
        marks: List[Dict[str, Any]],
        teacher: Optional[Teacher] = None,
    ) -> AttendanceSession:
        """Replace the statuses of the listed students, adding records that are missing"""
        session = await self.get_with_records(session_id)
        if not session:
            raise NotFoundError("Attendance session", session_id)
        await self._authorize(session.class_id, teacher)

        usable = self._usable_marks(marks, await self._enrolled(session.class_id))
        existing = {record.student_id: record for record in session.attendances}
        try:
            for student_id, mark in usable.items():
                record = existing.get(student_id)
                if record is None:
                    session.attendances.append(Attendance(
                        student_id=student_id,
                        status=mark["status"],
                        remarks=mark.get("remarks"),
                    ))
                else:
                    record.status = mark["status"]
                    record.remarks = mark.get("remarks")
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update attendance session {session_id}: {e}")
            raise

        return await self.get_with_records(session.id)

    async def delete_session(self, session_id: UUID, teacher: Optional[Teacher] = None) -> None:
        session = await self.get(session_id)
        if not session:
            raise NotFoundError("Attendance session", session_id)
        await self._authorize(session.class_id, teacher)

        try:
            await self.db.execute(delete(Attendance).where(Attendance.session_id == session.id))
            await self.db.execute(delete(AttendanceSession).where(AttendanceSession.id == session.id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete attendance session {session_id}: {e}")
            raise
        logger.info(f"Deleted attendance session {session_id}")
