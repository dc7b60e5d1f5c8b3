# school_portal/models/announcement.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Announcement(Base):
    __tablename__ = "announcements"

    admin_id = Column(Uuid, ForeignKey("admins.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    important = Column(Boolean, default=False, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # None never expires

    admin = relationship("Admin", back_populates="announcements")
