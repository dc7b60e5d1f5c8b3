# school_portal/models/student.py
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Student(Base):
    __tablename__ = "students"

    # Foreign Keys
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)

    # Student Information
    roll_number = Column(String(20), nullable=True, index=True)
    gender = Column(String(10), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(String(500), nullable=True)
    parent_name = Column(String(100), nullable=True)
    parent_contact = Column(String(20), nullable=True)

    # Relationships
    user = relationship("User", back_populates="student")
    class_ref = relationship("ClassModel", back_populates="students")
    grades = relationship("Grade", back_populates="student")
    submissions = relationship("AssignmentSubmission", back_populates="student")
    attendances = relationship("Attendance", back_populates="student")
