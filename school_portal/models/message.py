# school_portal/models/message.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Message(Base):
    __tablename__ = "messages"

    # Both ends are login users, whatever their role
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    subject = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
