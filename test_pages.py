from datetime import time

from conftest import auth_headers
from school_portal.models import User


async def test_admin_dashboard_shows_totals(client, admin_headers, factory):
    await factory.school_class(name="Grade 7B")
    response = await client.get("/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200
    assert "Admin dashboard" in response.text
    assert "No upcoming events" in response.text


async def test_teacher_dashboard_lists_classes_and_lessons(client, teacher_headers, teacher, factory):
    class_obj = await factory.school_class(name="Grade 7B", teacher=teacher)
    subject = await factory.subject(name="Geography", code="GEO101")
    await factory.lesson(class_obj, subject, teacher, start=time(11, 15), end=time(12, 0))

    response = await client.get("/teacher/dashboard", headers=teacher_headers)
    assert response.status_code == 200
    assert "Grade 7B" in response.text
    assert "11:15-12:00" in response.text
    assert "Geography" in response.text


async def test_student_dashboard_without_class(client, factory):
    student = await factory.student()
    headers = auth_headers(await factory.db.get(User, student.user_id))

    response = await client.get("/student/dashboard", headers=headers)
    assert response.status_code == 200
    assert "Unassigned" in response.text
    assert "No assignments" in response.text


async def test_signed_in_user_skips_login_page(client, teacher_headers):
    response = await client.get("/login", headers=teacher_headers, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/teacher/dashboard"
