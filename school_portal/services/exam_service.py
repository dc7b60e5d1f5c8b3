# school_portal/services/exam_service.py
"""Exams, the papers scheduled for each class and the marks students earn."""
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import date
import logging

from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError, PermissionDenied, ValidationException
from ..models.class_model import ClassModel
from ..models.exam import Exam, ExamResult, ExamSchedule, ExamStatus, exam_classes, exam_invigilators
from ..models.student import Student
from ..models.subject import Subject
from ..models.teacher import Teacher
from ..models.user import User

logger = logging.getLogger(__name__)

GRADE_SCALE = (
    (90, "A+"), (85, "A"), (80, "A-"),
    (75, "B+"), (70, "B"), (65, "B-"),
    (60, "C+"), (55, "C"), (50, "C-"),
)


def percentage(marks: float, max_marks: float) -> float:
    return round(marks / max_marks * 100, 1) if max_marks else 0.0


def letter_grade(percent: float) -> str:
    for floor, letter in GRADE_SCALE:
        if percent >= floor:
            return letter
    return "F"


class ExamService(BaseService[Exam]):
    def __init__(self, db: AsyncSession):
        super().__init__(Exam, db)

    # Exams

    async def list_exams(
        self,
        search: Optional[str] = None,
        statuses: Optional[List[ExamStatus]] = None,
        class_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        stmt = select(Exam).options(selectinload(Exam.classes), selectinload(Exam.schedules))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Exam.name.ilike(pattern), Exam.description.ilike(pattern)))
        if statuses:
            stmt = stmt.where(Exam.status.in_(statuses))
        if class_id:
            stmt = stmt.where(Exam.classes.any(ClassModel.id == class_id))
        # any exam overlapping the requested window
        if start_date:
            stmt = stmt.where(Exam.end_date >= start_date)
        if end_date:
            stmt = stmt.where(Exam.start_date <= end_date)
        return await self.get_paginated(stmt, page=page, limit=limit, order_by="start_date")

    async def get_with_details(self, exam_id: Any) -> Optional[Exam]:
        stmt = (
            select(Exam)
            .where(Exam.id == exam_id)
            .options(
                selectinload(Exam.classes),
                selectinload(Exam.schedules).selectinload(ExamSchedule.class_ref),
                selectinload(Exam.schedules).selectinload(ExamSchedule.subject),
                selectinload(Exam.schedules).selectinload(ExamSchedule.invigilators).selectinload(Teacher.user),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def results_count(self, exam_id: UUID) -> int:
        stmt = select(func.count()).select_from(ExamResult).where(ExamResult.exam_id == exam_id)
        return (await self.db.execute(stmt)).scalar() or 0

    @staticmethod
    def _check_dates(start: date, end: date):
        if end < start:
            raise ValidationException("End date cannot be before start date")

    @staticmethod
    def _check_owned(classes, teacher: Optional[Teacher]):
        if teacher is not None and any(c.teacher_id != teacher.id for c in classes):
            raise PermissionDenied("Some classes do not belong to you")

    async def _load_classes(self, class_ids: List[UUID], teacher: Optional[Teacher] = None) -> List[ClassModel]:
        requested = list(dict.fromkeys(class_ids))
        result = await self.db.execute(select(ClassModel).where(ClassModel.id.in_(requested)))
        classes = result.scalars().all()
        if len(classes) != len(requested):
            raise NotFoundError("One or more classes")
        self._check_owned(classes, teacher)
        return list(classes)

    async def create_exam(self, data: Dict[str, Any], teacher: Optional[Teacher] = None) -> Exam:
        """Create an exam for the given classes; teachers may only use their own classes"""
        self._check_dates(data["start_date"], data["end_date"])
        classes = await self._load_classes(data["class_ids"], teacher)

        exam = Exam(**{k: v for k, v in data.items() if k != "class_ids"})
        exam.classes = classes
        try:
            self.db.add(exam)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create exam {data['name']}: {e}")
            raise

        logger.info(f"Created exam {exam.id} for {len(classes)} classes")
        return await self.get_with_details(exam.id)

    async def update_exam(self, exam_id: UUID, data: Dict[str, Any], teacher: Optional[Teacher] = None) -> Exam:
        exam = await self.get_with_details(exam_id)
        if not exam:
            raise NotFoundError("Exam", exam_id)
        self._check_owned(exam.classes, teacher)

        changes = {k: v for k, v in data.items() if v is not None or k == "description"}
        class_ids = changes.pop("class_ids", None)
        self._check_dates(
            changes.get("start_date", exam.start_date),
            changes.get("end_date", exam.end_date),
        )
        classes = await self._load_classes(class_ids, teacher) if class_ids else None

        try:
            for key, value in changes.items():
                setattr(exam, key, value)
            if classes is not None:
                exam.classes = classes
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update exam {exam_id}: {e}")
            raise
        return await self.get_with_details(exam.id)

    async def delete_exam(self, exam_id: UUID) -> None:
        """Remove results, papers and class links with the exam in one transaction"""
        exam = await self.get(exam_id)
        if not exam:
            raise NotFoundError("Exam", exam_id)

        schedule_ids = select(ExamSchedule.id).where(ExamSchedule.exam_id == exam.id)
        try:
            await self.db.execute(delete(ExamResult).where(ExamResult.exam_id == exam.id))
            await self.db.execute(delete(exam_invigilators).where(exam_invigilators.c.schedule_id.in_(schedule_ids)))
            await self.db.execute(delete(ExamSchedule).where(ExamSchedule.exam_id == exam.id))
            await self.db.execute(delete(exam_classes).where(exam_classes.c.exam_id == exam.id))
            await self.db.execute(delete(Exam).where(Exam.id == exam.id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete exam {exam_id}: {e}")
            raise

        logger.info(f"Deleted exam {exam_id}")

    # Schedules

    def _with_schedule_details(self, stmt):
        return stmt.options(
            selectinload(ExamSchedule.exam),
            selectinload(ExamSchedule.class_ref),
            selectinload(ExamSchedule.subject),
            selectinload(ExamSchedule.invigilators).selectinload(Teacher.user),
        )

    async def list_schedules(
        self,
        exam_id: Optional[UUID] = None,
        class_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        stmt = self._with_schedule_details(select(ExamSchedule))
        if exam_id:
            stmt = stmt.where(ExamSchedule.exam_id == exam_id)
        if class_id:
            stmt = stmt.where(ExamSchedule.class_id == class_id)
        if subject_id:
            stmt = stmt.where(ExamSchedule.subject_id == subject_id)
        if start_date:
            stmt = stmt.where(ExamSchedule.date >= start_date)
        if end_date:
            stmt = stmt.where(ExamSchedule.date <= end_date)
        stmt = stmt.order_by(ExamSchedule.date.asc(), ExamSchedule.start_time.asc())
        return await self.get_paginated(stmt, page=page, limit=limit)

    async def get_schedule(self, schedule_id: Any) -> Optional[ExamSchedule]:
        stmt = self._with_schedule_details(
            select(ExamSchedule).where(ExamSchedule.id == schedule_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_schedule(self, data: Dict[str, Any]) -> ExamSchedule:
        exam = await self.get(data["exam_id"])
        if not exam:
            raise NotFoundError("Exam", data["exam_id"])
        for key, model, label in (
            ("class_id", ClassModel, "Class"),
            ("subject_id", Subject, "Subject"),
        ):
            if not await self.db.get(model, data[key]):
                raise NotFoundError(label, data[key])

        linked = await self.db.execute(
            select(exam_classes.c.class_id).where(
                exam_classes.c.exam_id == exam.id,
                exam_classes.c.class_id == data["class_id"],
            )
        )
        if linked.first() is None:
            raise ValidationException("Class is not associated with this exam")
        if data["end_time"] <= data["start_time"]:
            raise ValidationException("End time must be after start time")
        if not exam.start_date <= data["date"] <= exam.end_date:
            raise ValidationException("Exam schedule date must be within the exam date range")

        invigilators: List[Teacher] = []
        teacher_ids = list(dict.fromkeys(data.get("invigilator_ids") or []))
        if teacher_ids:
            result = await self.db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids)))
            invigilators = list(result.scalars().all())
            if len(invigilators) != len(teacher_ids):
                raise NotFoundError("One or more invigilators")

        # a class sits one paper at a time
        clash = await self.db.execute(
            select(ExamSchedule.id).where(
                ExamSchedule.class_id == data["class_id"],
                ExamSchedule.date == data["date"],
                ExamSchedule.start_time < data["end_time"],
                ExamSchedule.end_time > data["start_time"],
            ).limit(1)
        )
        clash_id = clash.scalar_one_or_none()
        if clash_id:
            raise ConflictError(
                "Class already has an exam at this time",
                {"conflicting_schedule_id": str(clash_id)},
            )

        schedule = ExamSchedule(**{k: v for k, v in data.items() if k != "invigilator_ids"})
        schedule.invigilators = invigilators
        try:
            self.db.add(schedule)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to schedule exam {exam.id}: {e}")
            raise

        logger.info(f"Scheduled exam {exam.id} for class {data['class_id']} on {data['date']}")
        return await self.get_schedule(schedule.id)

    async def delete_schedule(self, schedule_id: UUID) -> None:
        schedule = await self.db.get(ExamSchedule, schedule_id)
        if not schedule:
            raise NotFoundError("Exam schedule", schedule_id)
        try:
            await self.db.execute(delete(exam_invigilators).where(exam_invigilators.c.schedule_id == schedule.id))
            await self.db.execute(delete(ExamSchedule).where(ExamSchedule.id == schedule.id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete exam schedule {schedule_id}: {e}")
            raise

    # Results

    async def list_results(
        self,
        exam_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        class_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        stmt = select(ExamResult).options(
            selectinload(ExamResult.exam),
            selectinload(ExamResult.subject),
            selectinload(ExamResult.student).selectinload(Student.user),
            selectinload(ExamResult.student).selectinload(Student.class_ref),
        )
        if exam_id:
            stmt = stmt.where(ExamResult.exam_id == exam_id)
        if student_id:
            stmt = stmt.where(ExamResult.student_id == student_id)
        if subject_id:
            stmt = stmt.where(ExamResult.subject_id == subject_id)
        if class_id or search:
            stmt = stmt.join(ExamResult.student)
            if class_id:
                stmt = stmt.where(Student.class_id == class_id)
            if search:
                stmt = stmt.join(Student.user).where(User.name.ilike(f"%{search.strip()}%"))
        stmt = stmt.order_by(ExamResult.created_at.desc(), ExamResult.id)
        return await self.get_paginated(stmt, page=page, limit=limit)

    async def _missing(self, model, ids) -> Optional[UUID]:
        result = await self.db.execute(select(model.id).where(model.id.in_(ids)))
        missing = set(ids) - set(result.scalars().all())
        return next(iter(missing), None)

    async def save_results(self, exam_id: UUID, entries: List[Dict[str, Any]]) -> int:
        """Create or overwrite one result per (student, subject) in a single transaction"""
        exam = await self.get(exam_id)
        if not exam:
            raise NotFoundError("Exam", exam_id)

        for entry in entries:
            if entry["marks"] < 0 or entry["marks"] > entry["max_marks"]:
                raise ValidationException("Marks must be between 0 and max marks")
        for model, key, label in ((Student, "student_id", "Student"), (Subject, "subject_id", "Subject")):
            missing = await self._missing(model, {entry[key] for entry in entries})
            if missing:
                raise NotFoundError(label, missing)

        result = await self.db.execute(select(ExamResult).where(ExamResult.exam_id == exam.id))
        existing = {(r.student_id, r.subject_id): r for r in result.scalars().all()}
        try:
            for entry in entries:
                values = dict(entry)
                if not values.get("grade"):
                    values["grade"] = letter_grade(percentage(entry["marks"], entry["max_marks"]))
                key = (entry["student_id"], entry["subject_id"])
                row = existing.get(key)
                if row is None:
                    row = ExamResult(exam_id=exam.id, **values)
                    self.db.add(row)
                    existing[key] = row
                else:
                    for field, value in values.items():
                        setattr(row, field, value)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to save results for exam {exam_id}: {e}")
            raise

        logger.info(f"Saved {len(entries)} results for exam {exam.id}")
        return len(entries)
