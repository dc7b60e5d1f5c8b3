# school_portal/services/grade_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationException
from ..core.security import SessionData
from ..models.class_model import ClassModel
from ..models.grade import Grade
from ..models.student import Student
from ..models.subject import Subject
from ..models.teacher import Teacher
from ..models.user import UserRole

logger = logging.getLogger(__name__)


class GradeService(BaseService[Grade]):
    def __init__(self, db: AsyncSession):
        super().__init__(Grade, db)

    async def list_grades(
        self,
        session: SessionData,
        student_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
    ) -> List[Grade]:
        """Grades visible to the session: recorded by a teacher, owned by a student, all for admins"""
        stmt = (
            select(Grade)
            .options(
                selectinload(Grade.student).selectinload(Student.user),
                selectinload(Grade.subject),
            )
            .order_by(Grade.created_at.desc())
        )

        if session.role == UserRole.TEACHER:
            stmt = stmt.join(Teacher, Grade.teacher_id == Teacher.id).where(
                Teacher.user_id == UUID(session.user_id)
            )
        elif session.role == UserRole.STUDENT:
            stmt = stmt.join(Student, Grade.student_id == Student.id).where(
                Student.user_id == UUID(session.user_id)
            )

        if student_id:
            stmt = stmt.where(Grade.student_id == student_id)
        if subject_id:
            stmt = stmt.where(Grade.subject_id == subject_id)

        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_with_details(self, grade_id: Any) -> Optional[Grade]:
        stmt = (
            select(Grade)
            .where(Grade.id == grade_id)
            .options(
                selectinload(Grade.student).selectinload(Student.user),
                selectinload(Grade.subject),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def record_grade(self, teacher: Teacher, data: Dict[str, Any]) -> Grade:
        if data["score"] > data["max_score"]:
            raise ValidationException("Score cannot exceed the maximum score")

        student = await self.db.get(Student, data["student_id"])
        if not student:
            raise NotFoundError("Student", data["student_id"])
        if not await self.db.get(Subject, data["subject_id"]):
            raise NotFoundError("Subject", data["subject_id"])

        # teachers grade only students enrolled in a class they own
        result = await self.db.execute(
            select(ClassModel.id).where(
                ClassModel.id == student.class_id,
                ClassModel.teacher_id == teacher.id,
            )
        )
        if student.class_id is None or result.first() is None:
            raise PermissionDenied("Student is not in any of your classes")

        try:
            grade = await self.create(dict(data, teacher_id=teacher.id))
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to record grade for student {student.id}: {e}")
            raise

        logger.info(f"Teacher {teacher.id} recorded grade {grade.id} for student {student.id}")
        return await self.get_with_details(grade.id)

    async def delete_grade(self, grade_id: UUID, teacher: Teacher) -> None:
        grade = await self.get(grade_id)
        if not grade:
            raise NotFoundError("Grade", grade_id)
        if grade.teacher_id != teacher.id:
            raise PermissionDenied("Only the teacher who recorded this grade can delete it")
        await self.delete(grade.id)
