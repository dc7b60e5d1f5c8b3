# school_portal/routers/auth.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import AuthenticationError
from ..core.gate import read_session_token
from ..core.security import decode_session_token
from ..models.user import User
from ..schemas.auth_schemas import LoginRequest
from ..services.auth_service import AuthService, format_session_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


def set_session_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def clear_session_cookie(response: Response):
    response.delete_cookie(key=settings.session_cookie_name, path="/")


@router.post("/login", response_model=dict)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Check email and password and start a session"""
    service = AuthService(db)
    outcome = await service.login(credentials.email, credentials.password)
    if not outcome:
        raise AuthenticationError(INVALID_CREDENTIALS)

    user, token = outcome
    set_session_cookie(response, token)
    return {
        "message": "Login successful",
        "access_token": token,
        "token_type": "bearer",
        "user": format_session_user(user),
    }


@router.post("/logout")
async def logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Logged out"}


@router.get("/session")
async def current_session(request: Request, db: AsyncSession = Depends(get_db)):
    """Report who the presented token belongs to"""
    session = decode_session_token(read_session_token(request))
    if session is None:
        return {"authenticated": False, "user": None}

    user = await db.get(User, UUID(session.user_id))
    if user is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": format_session_user(user)}
