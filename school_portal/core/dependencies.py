# school_portal/core/dependencies.py
"""Route-level session and role dependencies."""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, NotFoundError, PermissionDenied
from .gate import read_session_token
from .security import SessionData, decode_session_token
from ..models.admin import Admin
from ..models.student import Student
from ..models.teacher import Teacher
from ..models.user import UserRole


async def get_current_session(request: Request) -> SessionData:
    session = getattr(request.state, "session", None)
    if session is None:
        session = decode_session_token(read_session_token(request))
    if session is None:
        raise AuthenticationError()
    return session


def require_roles(*roles: UserRole):
    async def dependency(session: SessionData = Depends(get_current_session)) -> SessionData:
        if session.role not in roles:
            allowed = " or ".join(role.value.title() for role in roles)
            raise PermissionDenied(f"{allowed} access required")
        return session
    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_teacher = require_roles(UserRole.TEACHER)
require_student = require_roles(UserRole.STUDENT)
require_staff = require_roles(UserRole.ADMIN, UserRole.TEACHER)


async def _profile_for(db: AsyncSession, model, session: SessionData, label: str):
    result = await db.execute(select(model).where(model.user_id == UUID(session.user_id)))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError(f"{label} profile")
    return profile


async def get_current_admin(
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    return await _profile_for(db, Admin, session, "Admin")


async def get_current_teacher(
    session: SessionData = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> Teacher:
    return await _profile_for(db, Teacher, session, "Teacher")


async def get_current_student(
    session: SessionData = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> Student:
    return await _profile_for(db, Student, session, "Student")


async def acting_teacher(
    session: SessionData = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> Optional[Teacher]:
    """The teacher profile of the caller, or None for admins"""
    if session.role == UserRole.ADMIN:
        return None
    return await _profile_for(db, Teacher, session, "Teacher")
