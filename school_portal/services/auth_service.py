# school_portal/services/auth_service.py
"""Credential checks and session issuing."""
from typing import Optional, Tuple
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.security import verify_password, create_session_token
from ..models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService(BaseService[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == normalize_email(email))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when the password matches its stored hash"""
        if not email or not password:
            return None

        user = await self.get_by_email(email)
        if not user:
            logger.info(f"Login failed: unknown email {normalize_email(email)}")
            return None

        if not verify_password(password, user.password_hash):
            logger.info(f"Login failed: bad credentials for user {user.id}")
            return None

        return user

    async def login(self, email: str, password: str) -> Optional[Tuple[User, str]]:
        user = await self.authenticate(email, password)
        if not user:
            return None
        logger.info(f"User {user.id} logged in as {user.role.value}")
        return user, create_session_token(user)


def format_session_user(user: User) -> dict:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "image": user.image,
        "role": user.role.value,
    }
