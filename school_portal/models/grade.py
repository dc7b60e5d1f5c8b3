# school_portal/models/grade.py
from sqlalchemy import Column, String, Text, Float, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Grade(Base):
    __tablename__ = "grades"

    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)  # e.g. "Unit Test 1"
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    remarks = Column(Text, nullable=True)
    exam_date = Column(Date, nullable=True)

    student = relationship("Student", back_populates="grades")
    teacher = relationship("Teacher", back_populates="grades")
    subject = relationship("Subject", back_populates="grades")
