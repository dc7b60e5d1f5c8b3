# school_portal/models/admin.py
from sqlalchemy import Column, String, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Admin(Base):
    __tablename__ = "admins"

    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    designation = Column(String(100), nullable=True)
    phone_number = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)

    user = relationship("User", back_populates="admin")
    events = relationship("Event", back_populates="admin")
    announcements = relationship("Announcement", back_populates="admin")
