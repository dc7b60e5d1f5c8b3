# school_portal/services/class_service.py
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError, ValidationException
from ..models.assignment import Assignment, AssignmentSubmission
from ..models.attendance import Attendance, AttendanceSession
from ..models.class_model import ClassModel
from ..models.exam import ExamSchedule, exam_classes, exam_invigilators
from ..models.student import Student
from ..models.teacher import Teacher
from ..models.timetable import TimetableEntry

logger = logging.getLogger(__name__)

SORTABLE = ("name", "academic_year", "room_number", "section", "created_at")


class ClassService(BaseService[ClassModel]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassModel, db)

    async def list_classes(
        self,
        search: Optional[str] = None,
        order_by: str = "name",
        order: str = "asc",
    ) -> List[Tuple[ClassModel, int]]:
        """Classes with their teacher loaded, paired with the number of enrolled students"""
        student_count = (
            select(func.count(Student.id))
            .where(Student.class_id == ClassModel.id)
            .correlate(ClassModel)
            .scalar_subquery()
        )
        stmt = select(ClassModel, student_count).options(
            selectinload(ClassModel.teacher).selectinload(Teacher.user)
        )
        if search:
            stmt = stmt.where(ClassModel.name.ilike(f"%{search.strip()}%"))

        column = getattr(ClassModel, order_by if order_by in SORTABLE else "name")
        stmt = stmt.order_by(column.desc() if order.lower() == "desc" else column.asc())

        result = await self.db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def get_with_details(self, class_id: Any) -> Optional[ClassModel]:
        stmt = (
            select(ClassModel)
            .where(ClassModel.id == class_id)
            .options(
                selectinload(ClassModel.teacher).selectinload(Teacher.user),
                selectinload(ClassModel.students).selectinload(Student.user),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_students(self, class_id: UUID) -> List[Student]:
        if not await self.get(class_id):
            raise NotFoundError("Class", class_id)
        stmt = (
            select(Student)
            .where(Student.class_id == class_id)
            .options(selectinload(Student.user))
            .order_by(Student.roll_number.asc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def _name_taken(self, name: str, exclude_id: Any = None) -> bool:
        stmt = select(ClassModel.id).where(ClassModel.name == name)
        if exclude_id is not None:
            stmt = stmt.where(ClassModel.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def _check_teacher(self, teacher_id: Optional[UUID]):
        if teacher_id is None:
            return
        result = await self.db.execute(select(Teacher.id).where(Teacher.id == teacher_id))
        if result.first() is None:
            raise NotFoundError("Teacher", teacher_id)

    async def create_class(self, data: Dict[str, Any]) -> ClassModel:
        data = dict(data, name=data["name"].strip())
        if await self._name_taken(data["name"]):
            raise ValidationException("A class with this name already exists")
        await self._check_teacher(data.get("teacher_id"))

        try:
            class_obj = await self.create(data)
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("A class with this name already exists")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create class {data['name']}: {e}")
            raise

        logger.info(f"Created class {class_obj.id} ({class_obj.name})")
        return await self.get_with_details(class_obj.id)

    async def update_class(self, class_id: UUID, data: Dict[str, Any]) -> ClassModel:
        class_obj = await self.get(class_id)
        if not class_obj:
            raise NotFoundError("Class", class_id)

        if data.get("name"):
            data["name"] = data["name"].strip()
            if await self._name_taken(data["name"], exclude_id=class_obj.id):
                raise ValidationException("A class with this name already exists")
        elif "name" in data:
            del data["name"]
        if "teacher_id" in data:
            await self._check_teacher(data["teacher_id"])

        try:
            await self.update(class_obj.id, data)
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("A class with this name already exists")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update class {class_id}: {e}")
            raise

        return await self.get_with_details(class_obj.id)

    async def delete_class(self, class_id: UUID) -> None:
        """Detach students and drop everything scheduled for the class, then the class"""
        class_obj = await self.get(class_id)
        if not class_obj:
            raise NotFoundError("Class", class_id)

        session_ids = select(AttendanceSession.id).where(AttendanceSession.class_id == class_obj.id)
        assignment_ids = select(Assignment.id).where(Assignment.class_id == class_obj.id)
        schedule_ids = select(ExamSchedule.id).where(ExamSchedule.class_id == class_obj.id)
        try:
            await self.db.execute(
                update(Student)
                .where(Student.class_id == class_obj.id)
                .values(class_id=None)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(TimetableEntry).where(TimetableEntry.class_id == class_obj.id))
            await self.db.execute(
                delete(Attendance)
                .where(Attendance.session_id.in_(session_ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(AttendanceSession).where(AttendanceSession.class_id == class_obj.id))
            await self.db.execute(
                delete(AssignmentSubmission)
                .where(AssignmentSubmission.assignment_id.in_(assignment_ids))
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(Assignment).where(Assignment.class_id == class_obj.id))
            await self.db.execute(delete(exam_invigilators).where(exam_invigilators.c.schedule_id.in_(schedule_ids)))
            await self.db.execute(delete(ExamSchedule).where(ExamSchedule.class_id == class_obj.id))
            await self.db.execute(delete(exam_classes).where(exam_classes.c.class_id == class_obj.id))
            await self.db.execute(delete(ClassModel).where(ClassModel.id == class_obj.id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete class {class_id}: {e}")
            raise

        logger.info(f"Deleted class {class_id}")
