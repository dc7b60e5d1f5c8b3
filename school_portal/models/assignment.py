# school_portal/models/assignment.py
from sqlalchemy import Column, String, Text, Float, DateTime, Enum, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base
import enum


class AssignmentStatus(enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class SubmissionStatus(enum.Enum):
    SUBMITTED = "SUBMITTED"
    LATE = "LATE"
    GRADED = "GRADED"


class Assignment(Base):
    __tablename__ = "assignments"

    # Foreign Keys
    teacher_id = Column(Uuid, ForeignKey("teachers.id"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(Enum(AssignmentStatus, name="assignment_status"), default=AssignmentStatus.ACTIVE, nullable=False)

    # Relationships
    teacher = relationship("Teacher", back_populates="assignments")
    class_ref = relationship("ClassModel", back_populates="assignments")
    subject = relationship("Subject", back_populates="assignments")
    submissions = relationship("AssignmentSubmission", back_populates="assignment")


class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"

    assignment_id = Column(Uuid, ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)

    content = Column(Text, nullable=True)
    status = Column(Enum(SubmissionStatus, name="submission_status"), default=SubmissionStatus.SUBMITTED, nullable=False)
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("Student", back_populates="submissions")
