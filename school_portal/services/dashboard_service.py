# school_portal/services/dashboard_service.py
"""Dashboard statistics for admins, teachers and students."""
from typing import Any, Dict, List, Tuple
from datetime import date, datetime, time, timedelta, timezone
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .announcement_service import AnnouncementService
from .assignment_service import as_utc
from .exam_service import letter_grade, percentage
from ..core.cache import cache_manager
from ..core.config import settings
from ..core.exceptions import PortalException
from ..models.admin import Admin
from ..models.assignment import Assignment, AssignmentStatus, AssignmentSubmission, SubmissionStatus
from ..models.attendance import Attendance, AttendanceSession, AttendanceStatus
from ..models.class_model import ClassModel
from ..models.event import Event, EventCategory
from ..models.grade import Grade
from ..models.student import Student
from ..models.teacher import Teacher
from ..models.timetable import TimetableEntry

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "dashboard:stats"
RECENT_SESSIONS = 30
UPCOMING_EVENTS = 5
IMPORTANT_CATEGORIES = {EventCategory.ACADEMIC, EventCategory.EXAM, EventCategory.HOLIDAY}

TEACHER_ATTENDANCE_DAYS = 14
STUDENT_ATTENDANCE_DAYS = 30
RECENT_ITEMS = 5
STUDENT_EVENTS = 3
STUDENT_ANNOUNCEMENTS = 3
NEXT_LESSON_MINUTES = 60
LESSON_TIME_FORMAT = "%H:%M"


def local_now() -> datetime:
    """Timetable times are wall-clock times on the server's clock"""
    return datetime.now()


def timetable_day(day: date) -> int:
    # 0 = Sunday
    return (day.weekday() + 1) % 7


def lesson_status(start: time, end: time, now: time) -> str:
    if now > end:
        return "Completed"
    if start <= now:
        return "In Progress"
    minutes_until = (start.hour * 60 + start.minute) - (now.hour * 60 + now.minute)
    if minutes_until <= NEXT_LESSON_MINUTES:
        return "Next"
    return "Upcoming"


def rate(present: int, total: int) -> float:
    return round(present / total * 100, 1) if total else 0.0


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return (await self.db.execute(stmt)).scalar() or 0

    async def _presence(self, *criteria) -> Tuple[int, int]:
        """(PRESENT marks, all marks) for attendance records matching the criteria"""
        stmt = (
            select(Attendance.status, func.count())
            .join(Attendance.session)
            .where(*criteria)
            .group_by(Attendance.status)
        )
        rows = (await self.db.execute(stmt)).all()
        total = sum(count for _, count in rows)
        present = sum(count for status, count in rows if status == AttendanceStatus.PRESENT)
        return present, total

    async def attendance_rate(self) -> float:
        """Share of PRESENT marks over the most recent sessions, as a percentage"""
        recent = (
            select(AttendanceSession.id)
            .order_by(AttendanceSession.date.desc())
            .limit(RECENT_SESSIONS)
            .subquery()
        )
        return rate(*await self._presence(Attendance.session_id.in_(select(recent.c.id))))

    async def upcoming_events(self):
        stmt = (
            select(Event)
            .where(Event.end_date >= datetime.now(timezone.utc))
            .options(selectinload(Event.admin).selectinload(Admin.user))
            .order_by(Event.start_date.asc())
            .limit(UPCOMING_EVENTS)
        )
        events = (await self.db.execute(stmt)).scalars().all()
        return [
            {
                "id": str(event.id),
                "title": event.title,
                "start_date": event.start_date,
                "end_date": event.end_date,
                "location": event.location or "School",
                "category": "IMPORTANT" if event.category in IMPORTANT_CATEGORIES else "REGULAR",
                "organizer": event.admin.user.name if event.admin and event.admin.user else "School Admin",
            }
            for event in events
        ]

    async def get_stats(self) -> Dict[str, Any]:
        cached = await cache_manager.get(STATS_CACHE_KEY)
        if cached is not None:
            return cached

        stats = {
            "total_students": await self._count(Student),
            "total_teachers": await self._count(Teacher),
            "total_classes": await self._count(ClassModel),
            "attendance_rate": await self.attendance_rate(),
            "upcoming_events": await self.upcoming_events(),
        }
        await cache_manager.set(STATS_CACHE_KEY, stats, expire=settings.dashboard_cache_ttl)
        return stats

    # Timetable for today

    async def _todays_lessons(self, now: datetime, **criteria) -> List[TimetableEntry]:
        stmt = (
            select(TimetableEntry)
            .filter_by(day_of_week=timetable_day(now.date()), **criteria)
            .options(
                selectinload(TimetableEntry.class_ref),
                selectinload(TimetableEntry.subject),
                selectinload(TimetableEntry.teacher).selectinload(Teacher.user),
            )
            .order_by(TimetableEntry.start_time.asc())
        )
        return (await self.db.execute(stmt)).scalars().all()

    @staticmethod
    def _schedule(lessons: List[TimetableEntry], now: datetime, for_student: bool = False) -> List[Dict[str, Any]]:
        schedule = []
        for entry in lessons:
            row = {
                "id": str(entry.id),
                "time": f"{entry.start_time.strftime(LESSON_TIME_FORMAT)} - {entry.end_time.strftime(LESSON_TIME_FORMAT)}",
                "subject": entry.subject.name,
                "room": entry.class_ref.room_number or "N/A",
                "status": lesson_status(entry.start_time, entry.end_time, now.time()),
            }
            if for_student:
                row["teacher"] = entry.teacher.user.name
            else:
                row["class"] = entry.class_ref.name
            schedule.append(row)
        return schedule

    @staticmethod
    def _next_class(schedule: List[Dict[str, Any]]):
        return next((row for row in schedule if row["status"] != "Completed"), None)

    # Teacher

    async def _teacher_activities(self, teacher: Teacher) -> List[Dict[str, Any]]:
        sessions = (await self.db.execute(
            select(AttendanceSession)
            .join(AttendanceSession.class_ref)
            .where(ClassModel.teacher_id == teacher.id)
            .options(selectinload(AttendanceSession.class_ref))
            .order_by(AttendanceSession.created_at.desc())
            .limit(RECENT_ITEMS)
        )).scalars().all()
        grades = (await self.db.execute(
            select(Grade)
            .where(Grade.teacher_id == teacher.id)
            .options(selectinload(Grade.student).selectinload(Student.user), selectinload(Grade.subject))
            .order_by(Grade.created_at.desc())
            .limit(RECENT_ITEMS)
        )).scalars().all()
        assignments = (await self.db.execute(
            select(Assignment)
            .where(Assignment.teacher_id == teacher.id)
            .options(selectinload(Assignment.class_ref))
            .order_by(Assignment.created_at.desc())
            .limit(RECENT_ITEMS)
        )).scalars().all()

        activities = [
            {
                "type": "attendance",
                "action": "Marked attendance",
                "target": f"Class {s.class_ref.name} on {s.date.isoformat()}",
                "date": s.created_at,
            }
            for s in sessions
        ] + [
            {
                "type": "grade",
                "action": "Recorded grade",
                "target": f"{g.student.user.name} - {g.name} ({g.subject.name})",
                "date": g.created_at,
                "score": f"{g.score:g}/{g.max_score:g}",
            }
            for g in grades
        ] + [
            {
                "type": "assignment",
                "action": "Created assignment",
                "target": f"{a.title} for Class {a.class_ref.name}",
                "date": a.created_at,
                "due_date": a.due_date,
            }
            for a in assignments
        ]
        activities.sort(key=lambda activity: as_utc(activity["date"]), reverse=True)
        return activities[:RECENT_ITEMS]

    async def teacher_dashboard(self, teacher: Teacher) -> Dict[str, Any]:
        now = local_now()
        classes = (await self.db.execute(
            select(ClassModel)
            .where(ClassModel.teacher_id == teacher.id)
            .options(selectinload(ClassModel.students))
            .order_by(ClassModel.name.asc())
        )).scalars().all()
        schedule = self._schedule(await self._todays_lessons(now, teacher_id=teacher.id), now)

        own_assignments = select(Assignment.id).where(Assignment.teacher_id == teacher.id)
        pending_review = await self._count(
            AssignmentSubmission,
            AssignmentSubmission.assignment_id.in_(own_assignments),
            AssignmentSubmission.status.in_([SubmissionStatus.SUBMITTED, SubmissionStatus.LATE]),
        )
        own_classes = select(ClassModel.id).where(ClassModel.teacher_id == teacher.id)
        since = now.date() - timedelta(days=TEACHER_ATTENDANCE_DAYS)
        present, total = await self._presence(
            AttendanceSession.class_id.in_(own_classes),
            AttendanceSession.date >= since,
        )

        return {
            "stats": {
                "students": sum(len(c.students) for c in classes),
                "classes_today": len(schedule),
                "next_class": self._next_class(schedule),
                "assignments": {
                    "total": await self._count(Assignment, Assignment.teacher_id == teacher.id),
                    "pending_review": pending_review,
                },
                "attendance_rate": rate(present, total),
            },
            "schedule": schedule,
            "classes": [
                {
                    "id": str(c.id),
                    "name": c.name,
                    "room_number": c.room_number or "N/A",
                    "students": len(c.students),
                }
                for c in classes
            ],
            "recent_activities": await self._teacher_activities(teacher),
        }

    # Student

    async def _student_attendance(self, student: Student, since: date) -> Dict[str, Any]:
        total_sessions = await self._count(
            AttendanceSession,
            AttendanceSession.class_id == student.class_id,
            AttendanceSession.date >= since,
        )
        present_count = await self._count(
            Attendance.__table__.join(AttendanceSession.__table__),
            Attendance.student_id == student.id,
            Attendance.status == AttendanceStatus.PRESENT,
            AttendanceSession.class_id == student.class_id,
            AttendanceSession.date >= since,
        )
        return {
            "rate": rate(present_count, total_sessions),
            "total_sessions": total_sessions,
            "present_count": present_count,
        }

    async def student_dashboard(self, student: Student) -> Dict[str, Any]:
        if not student.class_id:
            raise PortalException("Student is not assigned to any class", 404)

        now = local_now()
        schedule = self._schedule(
            await self._todays_lessons(now, class_id=student.class_id), now, for_student=True
        )
        utc_now = datetime.now(timezone.utc)
        start_of_day = datetime.combine(utc_now.date(), time.min, tzinfo=timezone.utc)

        submitted = select(AssignmentSubmission.assignment_id).where(AssignmentSubmission.student_id == student.id)
        pending = (await self.db.execute(
            select(Assignment)
            .where(
                Assignment.class_id == student.class_id,
                Assignment.status == AssignmentStatus.ACTIVE,
                Assignment.due_date >= start_of_day,
                Assignment.id.notin_(submitted),
            )
            .options(selectinload(Assignment.subject))
            .order_by(Assignment.due_date.asc())
        )).scalars().all()
        completed = (await self.db.execute(
            select(AssignmentSubmission)
            .where(AssignmentSubmission.student_id == student.id)
            .options(selectinload(AssignmentSubmission.assignment).selectinload(Assignment.subject))
            .order_by(AssignmentSubmission.submitted_at.desc())
            .limit(RECENT_ITEMS)
        )).scalars().all()
        grades = (await self.db.execute(
            select(Grade)
            .where(Grade.student_id == student.id)
            .options(selectinload(Grade.subject))
            .order_by(Grade.created_at.desc())
            .limit(RECENT_ITEMS)
        )).scalars().all()
        events = (await self.db.execute(
            select(Event)
            .where(Event.end_date >= utc_now)
            .order_by(Event.start_date.asc())
            .limit(STUDENT_EVENTS)
        )).scalars().all()
        announcements = await AnnouncementService(self.db).latest_active(STUDENT_ANNOUNCEMENTS)

        percentages = [percentage(g.score, g.max_score) for g in grades]
        average_grade = letter_grade(sum(percentages) / len(percentages)) if percentages else "N/A"
        since = now.date() - timedelta(days=STUDENT_ATTENDANCE_DAYS)

        return {
            "stats": {
                "attendance": await self._student_attendance(student, since),
                "classes_today": len(schedule),
                "next_class": self._next_class(schedule),
                "pending_assignments": len(pending),
                "average_grade": average_grade,
            },
            "schedule": schedule,
            "assignments": {
                "pending": [
                    {"id": str(a.id), "title": a.title, "subject": a.subject.name, "due_date": a.due_date}
                    for a in pending
                ],
                "completed": [
                    {
                        "id": str(s.id),
                        "assignment_id": str(s.assignment_id),
                        "title": s.assignment.title,
                        "subject": s.assignment.subject.name,
                        "submitted_at": s.submitted_at,
                        "status": s.status.value,
                        "score": s.score,
                    }
                    for s in completed
                ],
            },
            "grades": [
                {
                    "id": str(g.id),
                    "name": g.name,
                    "score": g.score,
                    "max_score": g.max_score,
                    "percentage": percentage(g.score, g.max_score),
                    "subject": g.subject.name,
                    "date": g.created_at,
                }
                for g in grades
            ],
            "events": [
                {
                    "id": str(e.id),
                    "title": e.title,
                    "description": e.description,
                    "start_date": e.start_date,
                    "end_date": e.end_date,
                }
                for e in events
            ],
            "announcements": [
                {
                    "id": str(a.id),
                    "title": a.title,
                    "important": a.important,
                    "author": a.admin.user.name,
                    "created_at": a.created_at,
                }
                for a in announcements
            ],
        }
