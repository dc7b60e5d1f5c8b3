import os

# Settings are read at import time, so the environment comes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SESSION_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("REDIS_URL", None)

from datetime import time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from school_portal.core.database import get_db, init_models
from school_portal.core.security import create_session_token, hash_password
from school_portal.main import app
from school_portal.models import (
    Admin, ClassModel, Student, Subject, Teacher, TimetableEntry, User, UserRole,
)

PASSWORD = "correct-horse"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_session_token(user)}"}


class Factory:
    """Creates committed rows for tests; every account uses PASSWORD"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    def _user(self, name, email, role, password_hash=_PASSWORD_HASH):
        return User(name=name, email=email, role=role, password_hash=password_hash)

    async def admin(self, name="Ada Admin", email="admin@school.org") -> Admin:
        return await self._save(Admin(user=self._user(name, email, UserRole.ADMIN)))

    async def teacher(self, name="Tess Teacher", email="tess@school.org", **fields) -> Teacher:
        return await self._save(Teacher(user=self._user(name, email, UserRole.TEACHER), **fields))

    async def student(self, name="Sam Student", email="sam@school.org", class_obj=None, **fields) -> Student:
        return await self._save(Student(
            user=self._user(name, email, UserRole.STUDENT),
            class_id=class_obj.id if class_obj else None,
            **fields,
        ))

    async def school_class(self, name="Grade 9A", teacher=None, **fields) -> ClassModel:
        return await self._save(ClassModel(
            name=name, teacher_id=teacher.id if teacher else None, **fields
        ))

    async def subject(self, name="Mathematics", code="MATH101") -> Subject:
        return await self._save(Subject(name=name, code=code))

    async def lesson(self, class_obj, subject, teacher, day=1, start=time(9, 0), end=time(10, 0)) -> TimetableEntry:
        return await self._save(TimetableEntry(
            class_id=class_obj.id,
            subject_id=subject.id,
            teacher_id=teacher.id,
            day_of_week=day,
            start_time=start,
            end_time=end,
        ))

    async def reload(self, model, id):
        self.db.expunge_all()
        return await self.db.get(model, id)


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
async def admin(factory):
    return await factory.admin()


@pytest.fixture
async def admin_headers(admin, db):
    user = await db.get(User, admin.user_id)
    return auth_headers(user)


@pytest.fixture
async def teacher(factory):
    return await factory.teacher()


@pytest.fixture
async def teacher_headers(teacher, db):
    user = await db.get(User, teacher.user_id)
    return auth_headers(user)
