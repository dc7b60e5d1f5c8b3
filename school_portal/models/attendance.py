# school_portal/models/attendance.py
from sqlalchemy import Column, String, Date, Enum, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base
import enum


class AttendanceStatus(enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"

    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    class_ref = relationship("ClassModel", back_populates="attendance_sessions")
    attendances = relationship("Attendance", back_populates="session")


class Attendance(Base):
    __tablename__ = "attendances"

    session_id = Column(Uuid, ForeignKey("attendance_sessions.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    status = Column(Enum(AttendanceStatus, name="attendance_status"), default=AttendanceStatus.PRESENT, nullable=False)
    remarks = Column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_session_student"),
    )

    session = relationship("AttendanceSession", back_populates="attendances")
    student = relationship("Student", back_populates="attendances")
