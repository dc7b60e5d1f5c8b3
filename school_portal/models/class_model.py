# school_portal/models/class_model.py
from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    # A class is owned by at most one teacher
    teacher_id = Column(Uuid, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True, index=True)

    # Class Information
    name = Column(String(50), unique=True, nullable=False, index=True)
    academic_year = Column(String(10), nullable=True)
    room_number = Column(String(20), nullable=True)
    section = Column(String(10), nullable=True)

    # Relationships
    teacher = relationship("Teacher", back_populates="classes")
    students = relationship("Student", back_populates="class_ref")
    assignments = relationship("Assignment", back_populates="class_ref")
    timetable_entries = relationship("TimetableEntry", back_populates="class_ref")
    attendance_sessions = relationship("AttendanceSession", back_populates="class_ref")
