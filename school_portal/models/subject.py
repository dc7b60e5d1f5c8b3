# school_portal/models/subject.py
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class Subject(Base):
    __tablename__ = "subjects"

    name = Column(String(100), nullable=False, index=True)
    code = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=True)

    assignments = relationship("Assignment", back_populates="subject")
    grades = relationship("Grade", back_populates="subject")
    timetable_entries = relationship("TimetableEntry", back_populates="subject")
