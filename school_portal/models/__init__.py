# school_portal/models/__init__.py
"""Import all models here, needed for Alembic migration and create_all."""
from .base import Base

from .user import User, UserRole
from .admin import Admin
from .teacher import Teacher
from .student import Student
from .class_model import ClassModel
from .subject import Subject
from .assignment import Assignment, AssignmentSubmission, AssignmentStatus, SubmissionStatus
from .grade import Grade
from .attendance import AttendanceSession, Attendance, AttendanceStatus
from .event import Event, EventCategory, EventStatus
from .timetable import TimetableEntry
from .announcement import Announcement
from .exam import Exam, ExamSchedule, ExamResult, ExamStatus, exam_classes, exam_invigilators
from .message import Message

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Admin",
    "Teacher",
    "Student",
    "ClassModel",
    "Subject",
    "Assignment",
    "AssignmentSubmission",
    "AssignmentStatus",
    "SubmissionStatus",
    "Grade",
    "AttendanceSession",
    "Attendance",
    "AttendanceStatus",
    "Event",
    "EventCategory",
    "EventStatus",
    "TimetableEntry",
    "Announcement",
    "Exam",
    "ExamSchedule",
    "ExamResult",
    "ExamStatus",
    "exam_classes",
    "exam_invigilators",
    "Message",
]
