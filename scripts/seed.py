#!/usr/bin/env python3
"""Create the tables and load a small demo school.

Usage: DATABASE_URL=... SESSION_SECRET_KEY=... python scripts/seed.py
"""
import asyncio
import os
import sys
from datetime import date, time

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy import select

from school_portal.core.database import AsyncSessionLocal, init_models, close_db_connections
from school_portal.core.security import hash_password
from school_portal.models import (
    Admin, ClassModel, Student, Subject, Teacher, TimetableEntry, User, UserRole,
)

SEED_PASSWORD = os.getenv("SEED_PASSWORD", "password123")

TEACHERS = [
    ("Anita Rao", "anita.rao@school.org", "M.Sc. Mathematics", "Senior Teacher"),
    ("David Mensah", "david.mensah@school.org", "M.A. English", "Teacher"),
]
CLASSES = [("Grade 9A", "A", "2025-26", "101"), ("Grade 10B", "B", "2025-26", "204")]
SUBJECTS = [("Mathematics", "MATH101"), ("English", "ENG101"), ("Science", "SCI101")]
STUDENTS = [
    ("Priya Shah", "priya.shah@school.org", "Grade 9A", "9A-01", "female"),
    ("Tom Becker", "tom.becker@school.org", "Grade 9A", "9A-02", "male"),
    ("Lina Haddad", "lina.haddad@school.org", "Grade 10B", "10B-01", "female"),
]


async def seed():
    await init_models()
    password_hash = hash_password(SEED_PASSWORD)

    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(User.id).limit(1))
        if existing.first():
            print("ℹ️  Database already has users, nothing to seed")
            return

        admin_user = User(email="admin@school.org", name="School Admin", role=UserRole.ADMIN, password_hash=password_hash)
        db.add(Admin(user=admin_user, designation="Principal"))

        teachers = []
        for name, email, qualification, designation in TEACHERS:
            user = User(email=email, name=name, role=UserRole.TEACHER, password_hash=password_hash)
            teacher = Teacher(user=user, qualification=qualification, designation=designation)
            db.add(teacher)
            teachers.append(teacher)

        classes = {}
        for (name, section, year, room), teacher in zip(CLASSES, teachers):
            class_obj = ClassModel(name=name, section=section, academic_year=year, room_number=room, teacher=teacher)
            db.add(class_obj)
            classes[name] = class_obj

        subjects = [Subject(name=name, code=code) for name, code in SUBJECTS]
        db.add_all(subjects)

        for name, email, class_name, roll_number, gender in STUDENTS:
            user = User(email=email, name=name, role=UserRole.STUDENT, password_hash=password_hash)
            db.add(Student(
                user=user,
                class_ref=classes[class_name],
                roll_number=roll_number,
                gender=gender,
                date_of_birth=date(2010, 1, 15),
            ))

        # Monday (1) morning lessons for each class
        for index, (class_obj, teacher) in enumerate(zip(classes.values(), teachers)):
            db.add(TimetableEntry(
                class_ref=class_obj,
                subject=subjects[index],
                teacher=teacher,
                day_of_week=1,
                start_time=time(9, 0),
                end_time=time(9, 45),
            ))

        await db.commit()

    print(f"✅ Seeded 1 admin, {len(TEACHERS)} teachers, {len(CLASSES)} classes, "
          f"{len(SUBJECTS)} subjects and {len(STUDENTS)} students")
    print(f"   All accounts use the password from SEED_PASSWORD (default '{SEED_PASSWORD}')")


async def main():
    try:
        await seed()
    finally:
        await close_db_connections()


if __name__ == "__main__":
    asyncio.run(main())
