# school_portal/services/assignment_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDenied
from ..models.assignment import Assignment, AssignmentSubmission, SubmissionStatus
from ..models.class_model import ClassModel
from ..models.student import Student
from ..models.subject import Subject
from ..models.teacher import Teacher

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AssignmentService(BaseService[Assignment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Assignment, db)

    def _with_relations(self, stmt):
        return stmt.options(
            selectinload(Assignment.teacher).selectinload(Teacher.user),
            selectinload(Assignment.class_ref),
            selectinload(Assignment.subject),
        )

    async def list_assignments(
        self,
        class_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        teacher_id: Optional[UUID] = None,
    ) -> List[Assignment]:
        stmt = self._with_relations(select(Assignment)).order_by(Assignment.due_date.asc())
        if class_id:
            stmt = stmt.where(Assignment.class_id == class_id)
        if subject_id:
            stmt = stmt.where(Assignment.subject_id == subject_id)
        if teacher_id:
            stmt = stmt.where(Assignment.teacher_id == teacher_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_with_details(self, assignment_id: Any) -> Optional[Assignment]:
        stmt = self._with_relations(
            select(Assignment).where(Assignment.id == assignment_id)
        ).options(
            selectinload(Assignment.submissions)
            .selectinload(AssignmentSubmission.student)
            .selectinload(Student.user)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _check_targets(self, class_id: Optional[UUID], subject_id: Optional[UUID]):
        if class_id is not None and not await self.db.get(ClassModel, class_id):
            raise NotFoundError("Class", class_id)
        if subject_id is not None and not await self.db.get(Subject, subject_id):
            raise NotFoundError("Subject", subject_id)

    async def _get_owned(self, assignment_id: UUID, teacher: Teacher) -> Assignment:
        assignment = await self.get(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment", assignment_id)
        if assignment.teacher_id != teacher.id:
            raise PermissionDenied("Only the teacher who created this assignment can change it")
        return assignment

    async def create_assignment(self, teacher: Teacher, data: Dict[str, Any]) -> Assignment:
        await self._check_targets(data["class_id"], data["subject_id"])
        try:
            assignment = await self.create(dict(data, teacher_id=teacher.id))
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create assignment for teacher {teacher.id}: {e}")
            raise
        logger.info(f"Teacher {teacher.id} created assignment {assignment.id}")
        return await self.get_with_details(assignment.id)

    async def update_assignment(self, assignment_id: UUID, teacher: Teacher, data: Dict[str, Any]) -> Assignment:
        assignment = await self._get_owned(assignment_id, teacher)
        changes = {k: v for k, v in data.items() if v is not None or k == "description"}
        await self._check_targets(changes.get("class_id"), changes.get("subject_id"))
        try:
            await self.update(assignment.id, changes)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update assignment {assignment_id}: {e}")
            raise
        return await self.get_with_details(assignment.id)

    async def delete_assignment(self, assignment_id: UUID, teacher: Teacher) -> None:
        assignment = await self._get_owned(assignment_id, teacher)
        try:
            await self.db.execute(
                delete(AssignmentSubmission).where(AssignmentSubmission.assignment_id == assignment.id)
            )
            await self.db.execute(delete(Assignment).where(Assignment.id == assignment.id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete assignment {assignment_id}: {e}")
            raise
        logger.info(f"Deleted assignment {assignment_id}")

    async def submit(self, assignment_id: UUID, student: Student, content: Optional[str]) -> AssignmentSubmission:
        """Create or replace the student's submission; late after the due date"""
        assignment = await self.get(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment", assignment_id)
        if student.class_id != assignment.class_id:
            raise PermissionDenied("Assignment is not set for your class")

        now = datetime.now(timezone.utc)
        status = SubmissionStatus.LATE if now > as_utc(assignment.due_date) else SubmissionStatus.SUBMITTED

        result = await self.db.execute(
            select(AssignmentSubmission).where(
                AssignmentSubmission.assignment_id == assignment.id,
                AssignmentSubmission.student_id == student.id,
            )
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            submission = AssignmentSubmission(assignment_id=assignment.id, student_id=student.id)
            self.db.add(submission)

        submission.content = content
        submission.status = status
        submission.submitted_at = now
        submission.score = None
        submission.feedback = None

        try:
            await self.db.commit()
            await self.db.refresh(submission)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to record submission for assignment {assignment_id}: {e}")
            raise
        return submission

    async def grade_submission(
        self,
        assignment_id: UUID,
        submission_id: UUID,
        teacher: Teacher,
        score: float,
        feedback: Optional[str],
    ) -> AssignmentSubmission:
        assignment = await self._get_owned(assignment_id, teacher)
        submission = await self.db.get(AssignmentSubmission, submission_id)
        if not submission or submission.assignment_id != assignment.id:
            raise NotFoundError("Submission", submission_id)

        submission.score = score
        submission.feedback = feedback
        submission.status = SubmissionStatus.GRADED
        try:
            await self.db.commit()
            await self.db.refresh(submission)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to grade submission {submission_id}: {e}")
            raise
        return submission
