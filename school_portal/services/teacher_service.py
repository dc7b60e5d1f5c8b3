# school_portal/services/teacher_service.py
"""Teacher profiles, their login users and class ownership."""
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from .auth_service import normalize_email
from ..core.exceptions import ConflictError, NotFoundError, ValidationException
from ..core.security import hash_password
from ..models.assignment import Assignment
from ..models.class_model import ClassModel
from ..models.exam import exam_invigilators
from ..models.grade import Grade
from ..models.message import Message
from ..models.teacher import Teacher
from ..models.timetable import TimetableEntry
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("qualification", "designation", "phone_number", "bio")

CLASS_CONFLICT_MESSAGE = "Some classes are already assigned to other teachers"


def format_class_conflict(class_obj: ClassModel) -> Dict[str, Any]:
    return {
        "id": str(class_obj.id),
        "name": class_obj.name,
        "teacher_id": str(class_obj.teacher_id) if class_obj.teacher_id else None,
        "section": class_obj.section,
        "academic_year": class_obj.academic_year,
    }


class TeacherService(BaseService[Teacher]):
    def __init__(self, db: AsyncSession):
        super().__init__(Teacher, db)

    async def list_teachers(self, search: Optional[str] = None) -> List[Teacher]:
        stmt = (
            select(Teacher)
            .join(Teacher.user)
            .options(selectinload(Teacher.user))
            .order_by(User.name.asc())
        )
        if search:
            stmt = stmt.where(User.name.ilike(f"%{search.strip()}%"))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_with_details(self, teacher_id: Any) -> Optional[Teacher]:
        stmt = (
            select(Teacher)
            .where(Teacher.id == teacher_id)
            .options(selectinload(Teacher.user), selectinload(Teacher.classes))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: Any) -> Optional[Teacher]:
        stmt = select(Teacher).where(Teacher.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def resolve(self, id: UUID) -> Teacher:
        """Find a teacher by profile id, falling back to the linked user id"""
        teacher = await self.get_with_details(id)
        if not teacher:
            by_user = await self.get_by_user_id(id)
            if by_user:
                teacher = await self.get_with_details(by_user.id)
        if not teacher:
            raise NotFoundError("Teacher", id)
        return teacher

    async def _email_taken(self, email: str, exclude_user_id: Any = None) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email)
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def create_teacher(self, data: Dict[str, Any]) -> Teacher:
        """Create the login user and the teacher profile together"""
        email = normalize_email(data["email"])
        if await self._email_taken(email):
            raise ValidationException("User with this email already exists")

        try:
            user = User(
                email=email,
                name=data["name"].strip(),
                role=UserRole.TEACHER,
                password_hash=hash_password(data["password"]),
            )
            teacher = Teacher(user=user, **{f: data.get(f) for f in PROFILE_FIELDS})
            self.db.add(teacher)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("User with this email already exists")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create teacher {email}: {e}")
            raise

        logger.info(f"Created teacher {teacher.id} for user {user.id}")
        return await self.get_with_details(teacher.id)

    async def update_teacher(self, teacher_id: UUID, data: Dict[str, Any]) -> Teacher:
        teacher = await self.get_with_details(teacher_id)
        if not teacher:
            raise NotFoundError("Teacher", teacher_id)

        # blank values leave the stored field alone
        changes = {k: v for k, v in data.items() if v is not None and v != ""}

        if "email" in changes:
            email = normalize_email(changes["email"])
            if await self._email_taken(email, exclude_user_id=teacher.user_id):
                raise ValidationException("User with this email already exists")
            teacher.user.email = email
        if "name" in changes:
            teacher.user.name = changes["name"].strip()
        if "password" in changes:
            teacher.user.password_hash = hash_password(changes["password"])
        for field in PROFILE_FIELDS:
            if field in changes:
                setattr(teacher, field, changes[field])

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationException("User with this email already exists")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update teacher {teacher_id}: {e}")
            raise

        return await self.get_with_details(teacher.id)

    async def _count_owned(self, model, teacher_id: UUID) -> int:
        stmt = select(func.count()).select_from(model).where(model.teacher_id == teacher_id)
        return (await self.db.execute(stmt)).scalar() or 0

    async def _delete_user_row(self, user_id: UUID):
        await self.db.execute(delete(User).where(User.id == user_id))

    async def delete_teacher(self, teacher_id: UUID) -> None:
        """Remove the teacher profile and its user in one transaction"""
        teacher = await self.get(teacher_id)
        if not teacher:
            raise NotFoundError("Teacher", teacher_id)

        owned = []
        for model, label in (
            (Assignment, "assignments"),
            (Grade, "grades"),
            (TimetableEntry, "timetable entries"),
        ):
            if await self._count_owned(model, teacher.id):
                owned.append(label)
        if owned:
            raise ConflictError(f"Teacher still has {', '.join(owned)}")

        user_id = teacher.user_id
        try:
            await self.db.execute(
                update(ClassModel)
                .where(ClassModel.teacher_id == teacher.id)
                .values(teacher_id=None)
                .execution_options(synchronize_session=False)
            )
            await self.db.execute(delete(exam_invigilators).where(exam_invigilators.c.teacher_id == teacher.id))
            await self.db.execute(
                delete(Message).where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            )
            await self.db.execute(delete(Teacher).where(Teacher.id == teacher.id))
            await self._delete_user_row(user_id)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete teacher {teacher_id}: {e}")
            raise

        logger.info(f"Deleted teacher {teacher_id} and user {user_id}")

    async def get_classes(self, teacher_id: UUID) -> List[ClassModel]:
        teacher = await self.get_with_details(teacher_id)
        if not teacher:
            raise NotFoundError("Teacher", teacher_id)
        return list(teacher.classes)

    async def reassign_classes(self, teacher_id: UUID, class_ids: List[UUID]) -> Teacher:
        """Make `class_ids` exactly the set of classes owned by the teacher.

        Classes owned by another teacher are never taken over: the request is
        rejected with the clashing classes and nothing is written. The claim
        itself only touches rows that are still free or already this
        teacher's, so a competing reassignment that lands between the check
        and the write shows up as a short row count and aborts the
        transaction.
        """
        teacher = await self.get(teacher_id)
        if not teacher:
            raise NotFoundError("Teacher", teacher_id)

        requested = list(dict.fromkeys(class_ids))
        classes: List[ClassModel] = []
        if requested:
            result = await self.db.execute(select(ClassModel).where(ClassModel.id.in_(requested)))
            classes = result.scalars().all()

        conflicts = [c for c in classes if c.teacher_id is not None and c.teacher_id != teacher.id]
        if conflicts:
            logger.info(f"Reassignment for teacher {teacher.id} rejected: {len(conflicts)} classes owned elsewhere")
            raise ConflictError(
                CLASS_CONFLICT_MESSAGE,
                {"conflicting_classes": [format_class_conflict(c) for c in conflicts]},
            )

        found_ids = [c.id for c in classes]
        try:
            release = update(ClassModel).where(ClassModel.teacher_id == teacher.id)
            if found_ids:
                release = release.where(ClassModel.id.notin_(found_ids))
            await self.db.execute(
                release.values(teacher_id=None).execution_options(synchronize_session=False)
            )

            if found_ids:
                claim = await self.db.execute(
                    update(ClassModel)
                    .where(
                        ClassModel.id.in_(found_ids),
                        or_(ClassModel.teacher_id.is_(None), ClassModel.teacher_id == teacher.id),
                    )
                    .values(teacher_id=teacher.id)
                    .execution_options(synchronize_session=False)
                )
                if claim.rowcount < len(found_ids):
                    await self.db.rollback()
                    raise ConflictError(
                        CLASS_CONFLICT_MESSAGE,
                        {"conflicting_classes": await self._claimed_elsewhere(found_ids, teacher.id)},
                    )

            await self.db.commit()
        except ConflictError:
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to reassign classes for teacher {teacher_id}: {e}")
            raise

        logger.info(f"Teacher {teacher.id} now owns {len(found_ids)} classes")
        return await self.get_with_details(teacher.id)

    async def _claimed_elsewhere(self, class_ids: List[UUID], teacher_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(ClassModel)
            .where(
                ClassModel.id.in_(class_ids),
                ClassModel.teacher_id.isnot(None),
                ClassModel.teacher_id != teacher_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [format_class_conflict(c) for c in result.scalars().all()]
