# school_portal/routers/pages.py
"""Server-rendered pages: login, logout and the per-role dashboards."""
from pathlib import Path
from typing import Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import clear_session_cookie, set_session_cookie
from ..core.database import get_db
from ..core.dependencies import get_current_session
from ..core.security import SessionData
from ..models.user import User, UserRole
from ..services.assignment_service import AssignmentService
from ..services.auth_service import AuthService
from ..services.dashboard_service import DashboardService
from ..services.grade_service import GradeService
from ..services.student_service import StudentService
from ..services.teacher_service import TeacherService
from ..services.timetable_service import TimetableService

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["Pages"])


def dashboard_path(role: UserRole) -> str:
    return f"/{role.value.lower()}/dashboard"


def safe_callback(callback_url: Optional[str]) -> Optional[str]:
    # only same-site absolute paths
    if callback_url and callback_url.startswith("/") and not callback_url.startswith("//"):
        return callback_url
    return None


@router.get("/", include_in_schema=False)
async def root(session: SessionData = Depends(get_current_session)):
    return RedirectResponse(dashboard_path(session.role), status_code=307)


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(request: Request, callback_url: Optional[str] = None):
    session = getattr(request.state, "session", None)
    if session is not None:
        return RedirectResponse(safe_callback(callback_url) or dashboard_path(session.role), status_code=303)
    return templates.TemplateResponse(
        request, "login.html", {"callback_url": callback_url or "", "error": None}
    )


@router.post("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    callback_url: str = Form(""),
    db: AsyncSession = Depends(get_db)
):
    service = AuthService(db)
    outcome = await service.login(email, password)
    if not outcome:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"callback_url": callback_url, "error": "Invalid email or password", "email": email},
            status_code=401,
        )

    user, token = outcome
    response = RedirectResponse(safe_callback(callback_url) or dashboard_path(user.role), status_code=303)
    set_session_cookie(response, token)
    return response


@router.get("/logout", include_in_schema=False)
async def logout():
    response = RedirectResponse("/login", status_code=303)
    clear_session_cookie(response)
    return response


@router.get("/unauthorized", response_class=HTMLResponse, include_in_schema=False)
async def unauthorized(request: Request):
    session = getattr(request.state, "session", None)
    return templates.TemplateResponse(
        request,
        "unauthorized.html",
        {"home": dashboard_path(session.role) if session else "/login"},
        status_code=403,
    )


async def _render_dashboard(request: Request, db: AsyncSession, session: SessionData, context: dict):
    user = await db.get(User, UUID(session.user_id))
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"role": session.role.value, "user": user, **context},
    )


@router.get("/admin/dashboard", response_class=HTMLResponse, include_in_schema=False)
async def admin_dashboard(
    request: Request,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    stats = await DashboardService(db).get_stats()
    return await _render_dashboard(request, db, session, {"stats": stats})


@router.get("/teacher/dashboard", response_class=HTMLResponse, include_in_schema=False)
async def teacher_dashboard(
    request: Request,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    teacher_service = TeacherService(db)
    profile = await teacher_service.get_by_user_id(UUID(session.user_id))
    classes, lessons = [], []
    if profile:
        classes = await teacher_service.get_classes(profile.id)
        lessons = await TimetableService(db).list_entries(teacher_id=profile.id)
    return await _render_dashboard(
        request, db, session, {"classes": classes, "lessons": lessons}
    )


@router.get("/student/dashboard", response_class=HTMLResponse, include_in_schema=False)
async def student_dashboard(
    request: Request,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    student_service = StudentService(db)
    profile = await student_service.get_by_user_id(UUID(session.user_id))
    student, assignments = None, []
    if profile:
        student = await student_service.get_with_details(profile.id)
        if student.class_id:
            assignments = await AssignmentService(db).list_assignments(class_id=student.class_id)
    grades = await GradeService(db).list_grades(session)
    return await _render_dashboard(
        request, db, session,
        {"student": student, "assignments": assignments, "grades": grades},
    )
