from datetime import date, datetime, time, timedelta, timezone

import pytest

from conftest import auth_headers
from school_portal.models import (
    Announcement, Assignment, AssignmentSubmission, Attendance, AttendanceSession, AttendanceStatus,
    Event, EventCategory, Grade, SubmissionStatus, User,
)
from school_portal.services import dashboard_service

# a Monday, timetable day 1
SCHOOL_NOW = datetime(2026, 10, 19, 10, 30)


async def test_stats_totals_and_attendance_rate(client, admin_headers, factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    students = [
        await factory.student(name=f"Pupil {n}", email=f"pupil{n}@school.org", class_obj=class_obj)
        for n in range(4)
    ]
    session = AttendanceSession(class_id=class_obj.id, date=date(2026, 10, 19))
    factory.db.add(session)
    await factory.db.flush()
    for student, status in zip(students, (AttendanceStatus.PRESENT, AttendanceStatus.PRESENT,
                                          AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)):
        factory.db.add(Attendance(session_id=session.id, student_id=student.id, status=status))
    await factory.db.commit()

    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total_students"] == 4
    assert body["total_teachers"] == 1
    assert body["total_classes"] == 1
    assert body["attendance_rate"] == 75.0


async def test_attendance_rate_without_records_is_zero(client, admin_headers):
    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert response.json()["attendance_rate"] == 0.0
    assert response.json()["upcoming_events"] == []


async def test_upcoming_events_skip_finished_and_label_category(client, admin_headers, admin, factory):
    now = datetime.now(timezone.utc)
    factory.db.add_all([
        Event(admin_id=admin.id, title="Finished", start_date=now - timedelta(days=3),
              end_date=now - timedelta(days=2)),
        Event(admin_id=admin.id, title="Board exams", start_date=now + timedelta(days=5),
              end_date=now + timedelta(days=9), category=EventCategory.EXAM),
        Event(admin_id=admin.id, title="Running now", start_date=now - timedelta(hours=1),
              end_date=now + timedelta(hours=1), category=EventCategory.SPORTS, location="Field"),
    ])
    await factory.db.commit()

    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    events = response.json()["upcoming_events"]
    assert [e["title"] for e in events] == ["Running now", "Board exams"]
    assert [e["category"] for e in events] == ["REGULAR", "IMPORTANT"]
    assert events[0]["location"] == "Field"
    assert events[1]["location"] == "School"
    assert events[1]["organizer"] == "Ada Admin"


async def test_stats_served_from_cache(client, admin_headers, monkeypatch):
    cached = {"total_students": 99, "total_teachers": 0, "total_classes": 0,
              "attendance_rate": 0.0, "upcoming_events": []}

    async def fake_get(key):
        assert key == dashboard_service.STATS_CACHE_KEY
        return cached

    monkeypatch.setattr(dashboard_service.cache_manager, "get", fake_get)
    response = await client.get("/api/dashboard/stats", headers=admin_headers)
    assert response.json()["total_students"] == 99


async def test_dashboard_is_admin_only(client, teacher_headers):
    response = await client.get("/api/dashboard/stats", headers=teacher_headers)
    assert response.status_code == 403


def test_lesson_status_windows():
    now = time(10, 30)
    assert dashboard_service.lesson_status(time(9), time(10), now) == "Completed"
    assert dashboard_service.lesson_status(time(10), time(11), now) == "In Progress"
    assert dashboard_service.lesson_status(time(11, 30), time(12), now) == "Next"
    assert dashboard_service.lesson_status(time(11, 31), time(12), now) == "Upcoming"


def test_timetable_day_starts_on_sunday():
    assert dashboard_service.timetable_day(date(2026, 10, 18)) == 0
    assert dashboard_service.timetable_day(date(2026, 10, 19)) == 1
    assert dashboard_service.timetable_day(date(2026, 10, 24)) == 6


@pytest.fixture
def school_clock(monkeypatch):
    monkeypatch.setattr(dashboard_service, "local_now", lambda: SCHOOL_NOW)


async def mark_register(factory, class_obj, day, marks):
    session = AttendanceSession(class_id=class_obj.id, date=day)
    factory.db.add(session)
    await factory.db.flush()
    for student, status in marks:
        factory.db.add(Attendance(session_id=session.id, student_id=student.id, status=status))
    await factory.db.commit()


async def test_teacher_dashboard(client, teacher_headers, teacher, factory, school_clock):
    class_obj = await factory.school_class(teacher=teacher, room_number="B12")
    other = await factory.school_class(name="Grade 10B", teacher=teacher)
    subject = await factory.subject()
    pupils = [
        await factory.student(name=f"Pupil {n}", email=f"pupil{n}@school.org", class_obj=class_obj)
        for n in range(2)
    ]
    await factory.student(name="Pupil 9", email="pupil9@school.org", class_obj=other)

    await factory.lesson(class_obj, subject, teacher, start=time(9), end=time(10))
    await factory.lesson(other, subject, teacher, start=time(11, 15), end=time(12))
    await factory.lesson(class_obj, subject, teacher, start=time(10), end=time(11))
    await factory.lesson(class_obj, subject, teacher, day=2, start=time(9), end=time(10))

    assignment = Assignment(teacher_id=teacher.id, class_id=class_obj.id, subject_id=subject.id,
                            title="Essay", due_date=datetime.now(timezone.utc) + timedelta(days=3))
    factory.db.add(assignment)
    await factory.db.flush()
    factory.db.add_all([
        AssignmentSubmission(assignment_id=assignment.id, student_id=pupils[0].id,
                             submitted_at=datetime.now(timezone.utc), status=SubmissionStatus.SUBMITTED),
        AssignmentSubmission(assignment_id=assignment.id, student_id=pupils[1].id,
                             submitted_at=datetime.now(timezone.utc), status=SubmissionStatus.GRADED, score=8),
    ])
    await factory.db.commit()

    await mark_register(factory, class_obj, date(2026, 10, 15),
                        [(pupils[0], AttendanceStatus.PRESENT), (pupils[1], AttendanceStatus.ABSENT)])
    await mark_register(factory, class_obj, date(2026, 9, 1),
                        [(pupils[0], AttendanceStatus.ABSENT), (pupils[1], AttendanceStatus.ABSENT)])

    response = await client.get("/api/teachers/dashboard", headers=teacher_headers)
    assert response.status_code == 200
    body = response.json()
    stats = body["stats"]
    assert stats["students"] == 3
    assert stats["classes_today"] == 3
    assert stats["assignments"] == {"total": 1, "pending_review": 1}
    assert stats["attendance_rate"] == 50.0

    schedule = body["schedule"]
    assert [row["time"] for row in schedule] == ["09:00 - 10:00", "10:00 - 11:00", "11:15 - 12:00"]
    assert [row["status"] for row in schedule] == ["Completed", "In Progress", "Next"]
    assert schedule[0]["room"] == "B12"
    assert schedule[2]["room"] == "N/A"
    assert stats["next_class"]["time"] == "10:00 - 11:00"

    assert {c["name"]: c["students"] for c in body["classes"]} == {"Grade 10B": 1, "Grade 9A": 2}
    assert {a["type"] for a in body["recent_activities"]} == {"attendance", "assignment"}
    assert len(body["recent_activities"]) == 3


async def test_student_dashboard(client, teacher, admin, factory, school_clock):
    class_obj = await factory.school_class(teacher=teacher)
    subject = await factory.subject()
    student = await factory.student(class_obj=class_obj)
    headers = auth_headers(await factory.db.get(User, student.user_id))
    await factory.lesson(class_obj, subject, teacher, start=time(13), end=time(14))

    now = datetime.now(timezone.utc)
    pending = Assignment(teacher_id=teacher.id, class_id=class_obj.id, subject_id=subject.id,
                         title="Poem", due_date=now + timedelta(days=2))
    done = Assignment(teacher_id=teacher.id, class_id=class_obj.id, subject_id=subject.id,
                      title="Essay", due_date=now + timedelta(days=1))
    factory.db.add_all([pending, done])
    await factory.db.flush()
    factory.db.add_all([
        AssignmentSubmission(assignment_id=done.id, student_id=student.id, submitted_at=now),
        Grade(student_id=student.id, teacher_id=teacher.id, subject_id=subject.id,
              name="Unit Test 1", score=45, max_score=50),
        Grade(student_id=student.id, teacher_id=teacher.id, subject_id=subject.id,
              name="Unit Test 2", score=35, max_score=50),
        Event(admin_id=admin.id, title="Sports Day", start_date=now + timedelta(days=4),
              end_date=now + timedelta(days=4, hours=6)),
        Announcement(admin_id=admin.id, title="Uniform check", content="Monday"),
        Announcement(admin_id=admin.id, title="Expired", content="Gone",
                     expires_at=now - timedelta(days=1)),
    ])
    await factory.db.commit()
    await mark_register(factory, class_obj, date(2026, 10, 10), [(student, AttendanceStatus.PRESENT)])
    await mark_register(factory, class_obj, date(2026, 10, 12), [(student, AttendanceStatus.ABSENT)])

    response = await client.get("/api/students/dashboard", headers=headers)
    assert response.status_code == 200
    body = response.json()
    stats = body["stats"]
    assert stats["attendance"] == {"rate": 50.0, "total_sessions": 2, "present_count": 1}
    assert stats["classes_today"] == 1
    assert stats["next_class"]["status"] == "Upcoming"
    assert stats["pending_assignments"] == 1
    assert stats["average_grade"] == "A-"

    assert body["schedule"][0]["teacher"] == "Tess Teacher"
    assert [a["title"] for a in body["assignments"]["pending"]] == ["Poem"]
    assert [a["title"] for a in body["assignments"]["completed"]] == ["Essay"]
    assert sorted(g["percentage"] for g in body["grades"]) == [70.0, 90.0]
    assert [e["title"] for e in body["events"]] == ["Sports Day"]
    assert [a["title"] for a in body["announcements"]] == ["Uniform check"]


async def test_student_without_class_has_no_dashboard(client, factory):
    student = await factory.student()
    headers = auth_headers(await factory.db.get(User, student.user_id))

    response = await client.get("/api/students/dashboard", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Student is not assigned to any class"


async def test_role_dashboards_check_role(client, admin_headers, teacher_headers):
    assert (await client.get("/api/teachers/dashboard", headers=admin_headers)).status_code == 403
    assert (await client.get("/api/students/dashboard", headers=teacher_headers)).status_code == 403
