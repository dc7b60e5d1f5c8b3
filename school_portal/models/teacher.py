# school_portal/models/teacher.py
from sqlalchemy import Column, String, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    # Foreign Keys
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, nullable=False, index=True)

    # Profile
    qualification = Column(String(200), nullable=True)
    designation = Column(String(100), nullable=True)
    phone_number = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="teacher")
    classes = relationship("ClassModel", back_populates="teacher", order_by="ClassModel.name")
    assignments = relationship("Assignment", back_populates="teacher")
    grades = relationship("Grade", back_populates="teacher")
    timetable_entries = relationship("TimetableEntry", back_populates="teacher")
