# school_portal/core/security.py
"""Password hashing and signed session tokens."""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID
import logging

from itsdangerous import BadSignature, URLSafeTimedSerializer
from passlib.context import CryptContext

from .config import settings
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_SALT = "session"


@dataclass(frozen=True)
class SessionData:
    """Claims carried by a session token."""
    user_id: str
    role: UserRole

    def to_dict(self) -> dict:
        return {"id": self.user_id, "role": self.role.value}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # stored value is not a recognised hash
        return False


def is_password_hash(value: Optional[str]) -> bool:
    return bool(value) and pwd_context.identify(value) is not None


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.session_secret_key, salt=SESSION_SALT)


def create_session_token(user: User) -> str:
    return _serializer().dumps({"id": str(user.id), "role": user.role.value})


def decode_session_token(token: Optional[str], max_age: Optional[int] = None) -> Optional[SessionData]:
    """Return the session claims, or None for a missing, tampered, expired or malformed token."""
    if not token:
        return None
    try:
        data = _serializer().loads(token, max_age=max_age or settings.session_max_age)
    except BadSignature:
        logger.debug("Rejected session token with bad signature or expired timestamp")
        return None
    if not isinstance(data, dict) or "id" not in data or "role" not in data:
        return None
    try:
        role = UserRole(data["role"])
        user_id = UUID(str(data["id"]))
    except ValueError:
        return None
    return SessionData(user_id=str(user_id), role=role)
