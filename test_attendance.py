from datetime import date
from uuid import UUID

import pytest

from conftest import auth_headers
from school_portal.models import Attendance, AttendanceSession, User


@pytest.fixture
async def register(factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    first = await factory.student(name="Asha", email="asha@school.org", class_obj=class_obj, roll_number="01")
    second = await factory.student(name="Bilal", email="bilal@school.org", class_obj=class_obj, roll_number="02")
    return class_obj, first, second


async def test_class_teacher_records_session(client, teacher_headers, register, factory):
    class_obj, first, second = register
    outsider = await factory.student(name="Out", email="out@school.org")

    response = await client.post("/api/attendance/sessions", headers=teacher_headers, json={
        "class_id": str(class_obj.id),
        "date": "2026-10-19",
        "attendances": [
            {"student_id": str(first.id), "status": "PRESENT"},
            {"student_id": str(second.id), "status": "ABSENT"},
            {"student_id": str(second.id), "status": "LATE", "remarks": "bus"},
            {"student_id": str(outsider.id), "status": "PRESENT"},
            {"student_id": str(first.id)},
            {"status": "ABSENT"},
        ],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["date"] == "2026-10-19"
    assert body["total_count"] == 2
    assert body["present_count"] == 1
    assert body["late_count"] == 1
    assert body["absent_count"] == 0
    late = next(r for r in body["attendances"] if r["student_id"] == str(second.id))
    assert late["remarks"] == "bus"


async def test_admin_may_record_for_any_class(client, admin_headers, register):
    class_obj, first, _ = register
    response = await client.post("/api/attendance/sessions", headers=admin_headers, json={
        "class_id": str(class_obj.id),
        "date": "2026-10-19",
        "attendances": [{"student_id": str(first.id), "status": "EXCUSED"}],
    })
    assert response.status_code == 200
    assert response.json()["excused_count"] == 1


async def test_other_teacher_is_forbidden(client, register, factory):
    class_obj, first, _ = register
    other = await factory.teacher(name="Otto", email="otto@school.org")
    headers = auth_headers(await factory.db.get(User, other.user_id))

    response = await client.post("/api/attendance/sessions", headers=headers, json={
        "class_id": str(class_obj.id),
        "date": "2026-10-19",
        "attendances": [{"student_id": str(first.id), "status": "PRESENT"}],
    })
    assert response.status_code == 403


async def test_students_cannot_record(client, register, factory):
    class_obj, first, _ = register
    headers = auth_headers(await factory.db.get(User, first.user_id))
    response = await client.post("/api/attendance/sessions", headers=headers, json={
        "class_id": str(class_obj.id), "date": "2026-10-19", "attendances": [],
    })
    assert response.status_code == 403


async def test_update_replaces_and_adds_marks(client, teacher_headers, register):
    class_obj, first, second = register
    created = await client.post("/api/attendance/sessions", headers=teacher_headers, json={
        "class_id": str(class_obj.id),
        "date": "2026-10-19",
        "attendances": [{"student_id": str(first.id), "status": "ABSENT"}],
    })
    session_id = created.json()["id"]

    response = await client.patch(f"/api/attendance/sessions/{session_id}", headers=teacher_headers, json={
        "attendances": [
            {"student_id": str(first.id), "status": "PRESENT"},
            {"student_id": str(second.id), "status": "LATE"},
        ],
    })
    assert response.status_code == 200
    body = response.json()
    assert (body["present_count"], body["late_count"], body["absent_count"]) == (1, 1, 0)
    assert body["total_count"] == 2


async def test_list_sessions_newest_first(client, admin_headers, register, factory):
    class_obj, _, _ = register
    for day in (date(2026, 10, 12), date(2026, 10, 19), date(2026, 10, 15)):
        factory.db.add(AttendanceSession(class_id=class_obj.id, date=day))
    await factory.db.commit()

    response = await client.get(f"/api/attendance/sessions?class_id={class_obj.id}", headers=admin_headers)
    body = response.json()
    assert [s["date"] for s in body["sessions"]] == ["2026-10-19", "2026-10-15", "2026-10-12"]
    assert body["meta"]["total"] == 3

    response = await client.get("/api/attendance/sessions?start_date=2026-10-14&end_date=2026-10-16",
                                headers=admin_headers)
    assert [s["date"] for s in response.json()["sessions"]] == ["2026-10-15"]


async def test_delete_session_removes_records(client, teacher_headers, register, factory):
    class_obj, first, _ = register
    created = await client.post("/api/attendance/sessions", headers=teacher_headers, json={
        "class_id": str(class_obj.id),
        "date": "2026-10-19",
        "attendances": [{"student_id": str(first.id), "status": "PRESENT"}],
    })
    session_id = created.json()["id"]
    record_id = created.json()["attendances"][0]["id"]

    response = await client.delete(f"/api/attendance/sessions/{session_id}", headers=teacher_headers)
    assert response.status_code == 200
    assert await factory.reload(AttendanceSession, UUID(session_id)) is None
    assert await factory.reload(Attendance, UUID(record_id)) is None
