from datetime import datetime, timedelta, timezone

from conftest import auth_headers
from school_portal.models import Announcement, User


async def add_announcement(factory, admin, title, important=False, expires_at=None):
    announcement = Announcement(
        admin_id=admin.id, title=title, content=f"{title} details",
        important=important, expires_at=expires_at,
    )
    factory.db.add(announcement)
    await factory.db.commit()
    return announcement


async def test_admin_posts_announcement(client, admin_headers, admin):
    response = await client.post("/api/announcements", headers=admin_headers, json={
        "title": "Library closed",
        "content": "The library is closed on Friday.",
        "important": True,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["author"] == "Ada Admin"
    assert body["admin_id"] == str(admin.id)
    assert body["important"] is True
    assert body["expires_at"] is None


async def test_teachers_cannot_post(client, teacher_headers):
    response = await client.post("/api/announcements", headers=teacher_headers, json={
        "title": "Hello", "content": "World",
    })
    assert response.status_code == 403


async def test_expired_announcements_hidden_from_non_admins(client, admin_headers, teacher_headers, admin, factory):
    past = datetime.now(timezone.utc) - timedelta(days=1)
    future = datetime.now(timezone.utc) + timedelta(days=1)
    await add_announcement(factory, admin, "Old news", expires_at=past)
    await add_announcement(factory, admin, "Still running", expires_at=future)
    await add_announcement(factory, admin, "Forever")

    as_teacher = await client.get("/api/announcements", headers=teacher_headers)
    assert sorted(a["title"] for a in as_teacher.json()["announcements"]) == ["Forever", "Still running"]

    as_admin = await client.get("/api/announcements", headers=admin_headers)
    assert as_admin.json()["meta"]["total"] == 3


async def test_list_filters_by_search_and_importance(client, admin_headers, admin, factory):
    await add_announcement(factory, admin, "Exam timetable", important=True)
    await add_announcement(factory, admin, "Sports kit")

    response = await client.get("/api/announcements?important=true", headers=admin_headers)
    assert [a["title"] for a in response.json()["announcements"]] == ["Exam timetable"]

    response = await client.get("/api/announcements?search=kit", headers=admin_headers)
    assert [a["title"] for a in response.json()["announcements"]] == ["Sports kit"]


async def test_students_read_single_announcement(client, admin, factory, db):
    announcement = await add_announcement(factory, admin, "Picture day")
    student = await factory.student()
    headers = auth_headers(await db.get(User, student.user_id))

    response = await client.get(f"/api/announcements/{announcement.id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Picture day"


async def test_update_can_clear_expiry(client, admin_headers, admin, factory):
    announcement = await add_announcement(
        factory, admin, "Bus changes", expires_at=datetime.now(timezone.utc) + timedelta(days=2)
    )

    response = await client.put(f"/api/announcements/{announcement.id}", headers=admin_headers,
                                json={"expires_at": None, "important": True})
    assert response.status_code == 200
    assert response.json()["expires_at"] is None
    assert response.json()["important"] is True
    assert response.json()["title"] == "Bus changes"


async def test_delete_and_missing_announcement(client, admin_headers, admin, factory):
    announcement = await add_announcement(factory, admin, "Typo")

    response = await client.delete(f"/api/announcements/{announcement.id}", headers=admin_headers)
    assert response.json() == {"message": "Announcement deleted successfully", "id": str(announcement.id)}

    missing = await client.get(f"/api/announcements/{announcement.id}", headers=admin_headers)
    assert missing.status_code == 404
