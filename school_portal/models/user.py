# school_portal/models/user.py
from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship
from .base import Base
import enum


class UserRole(enum.Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class User(Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    # Nullable: students may be created without a login
    password_hash = Column(String(255), nullable=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    image = Column(String(500), nullable=True)

    # Relationships (each user has at most one profile matching its role)
    admin = relationship("Admin", back_populates="user", uselist=False)
    teacher = relationship("Teacher", back_populates="user", uselist=False)
    student = relationship("Student", back_populates="user", uselist=False)
