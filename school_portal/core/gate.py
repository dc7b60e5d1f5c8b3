# school_portal/core/gate.py
"""Session and role gate applied to every request.

Paths on the allow-list pass straight through. Everything else needs a
valid session token; pages under ``/admin``, ``/teacher`` and ``/student``
additionally need the matching role.
"""
from typing import Iterable, Optional
from urllib.parse import urlencode
import enum
import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .config import settings
from .security import SessionData, decode_session_token
from ..models.user import UserRole

logger = logging.getLogger(__name__)

ROLE_PREFIXES = {
    "admin": UserRole.ADMIN,
    "teacher": UserRole.TEACHER,
    "student": UserRole.STUDENT,
}

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"


class GateDecision(enum.Enum):
    ALLOW = "allow"
    LOGIN = "login"
    UNAUTHORIZED = "unauthorized"


def is_public_path(path: str, public_paths: Optional[Iterable[str]] = None) -> bool:
    """Segment-prefix match: /login covers /login and /login/x but not /loginx"""
    for prefix in public_paths if public_paths is not None else settings.public_paths:
        prefix = prefix.rstrip("/")
        if not prefix:
            continue
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def required_role(path: str) -> Optional[UserRole]:
    segment = path.lstrip("/").split("/", 1)[0]
    return ROLE_PREFIXES.get(segment)


def check_access(
    path: str,
    session: Optional[SessionData],
    public_paths: Optional[Iterable[str]] = None,
) -> GateDecision:
    if is_public_path(path, public_paths):
        return GateDecision.ALLOW
    if session is None:
        return GateDecision.LOGIN
    role = required_role(path)
    if role is not None and session.role != role:
        return GateDecision.UNAUTHORIZED
    return GateDecision.ALLOW


def read_session_token(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def is_api_path(path: str) -> bool:
    return path == "/api" or path.startswith("/api/")


class RoleGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, public_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.public_paths = list(public_paths) if public_paths is not None else None

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        session = decode_session_token(read_session_token(request))
        request.state.session = session

        decision = check_access(path, session, self.public_paths)
        if decision == GateDecision.ALLOW:
            return await call_next(request)

        if decision == GateDecision.LOGIN:
            if is_api_path(path):
                return JSONResponse(status_code=401, content={"error": "Unauthorized"})
            logger.debug(f"No session for {path}, redirecting to login")
            query = urlencode({"callback_url": path})
            return RedirectResponse(f"{LOGIN_PATH}?{query}", status_code=307)

        logger.debug(f"Role {session.role.value} may not open {path}")
        return RedirectResponse(UNAUTHORIZED_PATH, status_code=307)
