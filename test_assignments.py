from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from conftest import auth_headers
from school_portal.models import Assignment, AssignmentSubmission, User


@pytest.fixture
async def classroom(factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    subject = await factory.subject()
    student = await factory.student(class_obj=class_obj)
    student_headers = auth_headers(await factory.db.get(User, student.user_id))
    return class_obj, subject, student, student_headers


async def make_assignment(factory, teacher, class_obj, subject, due_in=timedelta(days=2)):
    assignment = Assignment(
        teacher_id=teacher.id,
        class_id=class_obj.id,
        subject_id=subject.id,
        title="Fractions worksheet",
        due_date=datetime.now(timezone.utc) + due_in,
    )
    factory.db.add(assignment)
    await factory.db.commit()
    return assignment


async def test_teacher_creates_assignment(client, teacher_headers, classroom, teacher):
    class_obj, subject, _, _ = classroom
    response = await client.post("/api/assignments", headers=teacher_headers, json={
        "title": "Fractions worksheet",
        "due_date": "2026-11-02T09:00:00Z",
        "class_id": str(class_obj.id),
        "subject_id": str(subject.id),
    })
    assert response.status_code == 200
    body = response.json()
    assert body["teacher_id"] == str(teacher.id)
    assert body["status"] == "ACTIVE"
    assert body["class"] == {"id": str(class_obj.id), "name": "Grade 9A"}
    assert body["subject"]["code"] == "MATH101"


async def test_admin_cannot_create_assignment(client, admin_headers, classroom):
    class_obj, subject, _, _ = classroom
    response = await client.post("/api/assignments", headers=admin_headers, json={
        "title": "Nope",
        "due_date": "2026-11-02T09:00:00Z",
        "class_id": str(class_obj.id),
        "subject_id": str(subject.id),
    })
    assert response.status_code == 403


async def test_only_owner_edits_or_deletes(client, classroom, teacher, factory):
    class_obj, subject, _, _ = classroom
    assignment = await make_assignment(factory, teacher, class_obj, subject)
    other = await factory.teacher(name="Otto", email="otto@school.org")
    other_headers = auth_headers(await factory.db.get(User, other.user_id))

    response = await client.patch(f"/api/assignments/{assignment.id}", headers=other_headers,
                                  json={"title": "Hijacked"})
    assert response.status_code == 403

    response = await client.delete(f"/api/assignments/{assignment.id}", headers=other_headers)
    assert response.status_code == 403
    assert await factory.reload(Assignment, assignment.id) is not None


async def test_submission_on_time_then_late(client, classroom, teacher, factory):
    class_obj, subject, student, student_headers = classroom
    on_time = await make_assignment(factory, teacher, class_obj, subject)
    overdue = await make_assignment(factory, teacher, class_obj, subject, due_in=timedelta(hours=-1))

    response = await client.post(f"/api/assignments/{on_time.id}/submissions", headers=student_headers,
                                 json={"content": "1/2 + 1/4 = 3/4"})
    assert response.status_code == 200
    assert response.json()["status"] == "SUBMITTED"
    assert response.json()["student_id"] == str(student.id)

    response = await client.post(f"/api/assignments/{overdue.id}/submissions", headers=student_headers,
                                 json={"content": "sorry"})
    assert response.json()["status"] == "LATE"


async def test_resubmission_replaces_earlier_work(client, classroom, teacher, factory):
    class_obj, subject, _, student_headers = classroom
    assignment = await make_assignment(factory, teacher, class_obj, subject)
    url = f"/api/assignments/{assignment.id}/submissions"

    first = await client.post(url, headers=student_headers, json={"content": "draft"})
    second = await client.post(url, headers=student_headers, json={"content": "final"})
    assert first.json()["id"] == second.json()["id"]

    detail = await client.get(f"/api/assignments/{assignment.id}", headers=student_headers)
    submissions = detail.json()["submissions"]
    assert len(submissions) == 1
    assert submissions[0]["content"] == "final"
    assert submissions[0]["student_name"] == "Sam Student"


async def test_student_outside_class_cannot_submit(client, classroom, teacher, factory):
    class_obj, subject, _, _ = classroom
    assignment = await make_assignment(factory, teacher, class_obj, subject)
    outsider = await factory.student(name="Out", email="out@school.org")
    headers = auth_headers(await factory.db.get(User, outsider.user_id))

    response = await client.post(f"/api/assignments/{assignment.id}/submissions", headers=headers, json={})
    assert response.status_code == 403


async def test_owner_grades_submission(client, teacher_headers, classroom, teacher, factory):
    class_obj, subject, _, student_headers = classroom
    assignment = await make_assignment(factory, teacher, class_obj, subject)
    submitted = await client.post(f"/api/assignments/{assignment.id}/submissions",
                                  headers=student_headers, json={"content": "done"})
    submission_id = submitted.json()["id"]

    response = await client.patch(
        f"/api/assignments/{assignment.id}/submissions/{submission_id}",
        headers=teacher_headers,
        json={"score": 9, "feedback": "Neat work"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "GRADED"
    assert response.json()["score"] == 9


async def test_delete_assignment_removes_submissions(client, teacher_headers, classroom, teacher, factory):
    class_obj, subject, _, student_headers = classroom
    assignment = await make_assignment(factory, teacher, class_obj, subject)
    submitted = await client.post(f"/api/assignments/{assignment.id}/submissions",
                                  headers=student_headers, json={"content": "done"})

    response = await client.delete(f"/api/assignments/{assignment.id}", headers=teacher_headers)
    assert response.status_code == 200
    assert await factory.reload(AssignmentSubmission, UUID(submitted.json()["id"])) is None
