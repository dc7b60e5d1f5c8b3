# school_portal/models/exam.py
from sqlalchemy import (
    Column, String, Text, Float, Date, Time, Enum, ForeignKey, Uuid, Table, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from .base import Base
import enum


class ExamStatus(enum.Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Classes sitting an exam
exam_classes = Table(
    "exam_classes",
    Base.metadata,
    Column("exam_id", Uuid, ForeignKey("exams.id"), primary_key=True),
    Column("class_id", Uuid, ForeignKey("classes.id"), primary_key=True),
)

# Teachers supervising a paper
exam_invigilators = Table(
    "exam_invigilators",
    Base.metadata,
    Column("schedule_id", Uuid, ForeignKey("exam_schedules.id"), primary_key=True),
    Column("teacher_id", Uuid, ForeignKey("teachers.id"), primary_key=True),
)


class Exam(Base):
    __tablename__ = "exams"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    status = Column(Enum(ExamStatus, name="exam_status"), default=ExamStatus.UPCOMING, nullable=False, index=True)

    classes = relationship("ClassModel", secondary=exam_classes, order_by="ClassModel.name")
    schedules = relationship("ExamSchedule", back_populates="exam")
    results = relationship("ExamResult", back_populates="exam")


class ExamSchedule(Base):
    __tablename__ = "exam_schedules"

    exam_id = Column(Uuid, ForeignKey("exams.id"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    location = Column(String(200), nullable=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_exam_schedule_time_order"),
    )

    exam = relationship("Exam", back_populates="schedules")
    class_ref = relationship("ClassModel")
    subject = relationship("Subject")
    invigilators = relationship("Teacher", secondary=exam_invigilators)


class ExamResult(Base):
    __tablename__ = "exam_results"

    exam_id = Column(Uuid, ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False, index=True)

    marks = Column(Float, nullable=False)
    max_marks = Column(Float, nullable=False)
    grade = Column(String(5), nullable=True)
    remarks = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", "subject_id", name="uq_exam_result_student_subject"),
    )

    exam = relationship("Exam", back_populates="results")
    student = relationship("Student")
    subject = relationship("Subject")
