# school_portal/models/event.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, Enum, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base
import enum


class EventCategory(enum.Enum):
    ACADEMIC = "ACADEMIC"
    CULTURAL = "CULTURAL"
    SPORTS = "SPORTS"
    HOLIDAY = "HOLIDAY"
    EXAM = "EXAM"
    MEETING = "MEETING"
    OTHER = "OTHER"


class EventStatus(enum.Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Event(Base):
    __tablename__ = "events"

    admin_id = Column(Uuid, ForeignKey("admins.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_all_day = Column(Boolean, default=False, nullable=False)
    category = Column(Enum(EventCategory, name="event_category"), default=EventCategory.OTHER, nullable=False)
    status = Column(Enum(EventStatus, name="event_status"), default=EventStatus.UPCOMING, nullable=False)
    class_ids = Column(JSON, default=list)  # Target classes; empty means whole school

    admin = relationship("Admin", back_populates="events")
