# school_portal/models/timetable.py
from sqlalchemy import Column, Integer, Time, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"

    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False, index=True)  # 0 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_timetable_day_of_week"),
        CheckConstraint("end_time > start_time", name="ck_timetable_time_order"),
    )

    class_ref = relationship("ClassModel", back_populates="timetable_entries")
    subject = relationship("Subject", back_populates="timetable_entries")
    teacher = relationship("Teacher", back_populates="timetable_entries")
