# school_portal/services/student_service.py
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy import select, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from .auth_service import normalize_email
from ..core.exceptions import NotFoundError, ValidationException
from ..core.security import hash_password
from ..models.assignment import AssignmentSubmission
from ..models.attendance import Attendance
from ..models.class_model import ClassModel
from ..models.exam import ExamResult
from ..models.grade import Grade
from ..models.message import Message
from ..models.student import Student
from ..models.user import User, UserRole
from ..schemas.pagination import PageMeta

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "roll_number", "gender", "date_of_birth", "address", "parent_name", "parent_contact",
)

SORTABLE = {
    "name": User.name,
    "email": User.email,
    "roll_number": Student.roll_number,
    "gender": Student.gender,
    "date_of_birth": Student.date_of_birth,
    "created_at": Student.created_at,
}


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    def _with_relations(self, stmt):
        return stmt.options(selectinload(Student.user), selectinload(Student.class_ref))

    async def list_students(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        order_by: str = "name",
        order: str = "asc",
        class_name: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> Dict[str, Any]:
        stmt = select(Student).join(Student.user).outerjoin(Student.class_ref)

        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(User.name.ilike(pattern), Student.roll_number.ilike(pattern)))
        if class_name:
            stmt = stmt.where(ClassModel.name == class_name)
        if gender:
            stmt = stmt.where(Student.gender == gender)

        total = (await self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        )).scalar() or 0

        column = SORTABLE.get(order_by, User.name)
        stmt = stmt.order_by(column.desc() if order.lower() == "desc" else column.asc())
        stmt = self._with_relations(stmt).offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(stmt)
        return {
            "items": result.scalars().all(),
            "meta": PageMeta.build(total, page, limit).model_dump(),
        }

    async def get_with_details(self, student_id: Any) -> Optional[Student]:
        stmt = self._with_relations(
            select(Student).where(Student.id == student_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: Any) -> Optional[Student]:
        result = await self.db.execute(select(Student).where(Student.user_id == user_id))
        return result.scalar_one_or_none()

    async def _email_taken(self, email: str, exclude_user_id: Any = None) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email)
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        return (await self.db.execute(stmt)).first() is not None

    async def _class_id_for(self, class_name: Optional[str]) -> Optional[UUID]:
        # an unknown class name leaves the student unassigned
        if not class_name:
            return None
        result = await self.db.execute(select(ClassModel.id).where(ClassModel.name == class_name))
        return result.scalar_one_or_none()

    async def create_student(self, data: Dict[str, Any]) -> Student:
        email = normalize_email(data["email"])
        if await self._email_taken(email):
            raise ValidationException("Email is already in use")

        class_id = await self._class_id_for(data.get("class_name"))
        try:
            user = User(
                email=email,
                name=data["name"].strip(),
                role=UserRole.STUDENT,
                password_hash=hash_password(data["password"]) if data.get("password") else None,
            )
            student = Student(
                user=user,
                class_id=class_id,
                **{f: data.get(f) for f in PROFILE_FIELDS},
            )
            self.db.add(student)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("Email is already in use")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create student {email}: {e}")
            raise

        logger.info(f"Created student {student.id} for user {user.id}")
        return await self.get_with_details(student.id)

    async def update_student(self, student_id: UUID, data: Dict[str, Any]) -> Student:
        student = await self.get_with_details(student_id)
        if not student:
            raise NotFoundError("Student", student_id)

        if data.get("email"):
            email = normalize_email(data["email"])
            if await self._email_taken(email, exclude_user_id=student.user_id):
                raise ValidationException("Email is already in use")
            student.user.email = email
        if data.get("name"):
            student.user.name = data["name"].strip()
        if data.get("password"):
            student.user.password_hash = hash_password(data["password"])
        if "class_name" in data:
            student.class_id = await self._class_id_for(data["class_name"])
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(student, field, data[field])

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("Email is already in use")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update student {student_id}: {e}")
            raise

        return await self.get_with_details(student.id)

    async def delete_student(self, student_id: UUID) -> None:
        """Remove the student, its records and its user in one transaction"""
        student = await self.get(student_id)
        if not student:
            raise NotFoundError("Student", student_id)

        user_id = student.user_id
        try:
            for model in (AssignmentSubmission, Grade, Attendance, ExamResult):
                await self.db.execute(delete(model).where(model.student_id == student.id))
            await self.db.execute(
                delete(Message).where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            )
            await self.db.execute(delete(Student).where(Student.id == student.id))
            await self.db.execute(delete(User).where(User.id == user_id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete student {student_id}: {e}")
            raise

        logger.info(f"Deleted student {student_id} and user {user_id}")
