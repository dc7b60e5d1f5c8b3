import pytest

from conftest import auth_headers
from school_portal.models import Grade, User


@pytest.fixture
async def roster(factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    subject = await factory.subject()
    student = await factory.student(class_obj=class_obj)
    return class_obj, subject, student


def grade_body(student, subject, score=42, max_score=50):
    return {
        "student_id": str(student.id),
        "subject_id": str(subject.id),
        "name": "Unit Test 1",
        "score": score,
        "max_score": max_score,
        "exam_date": "2026-09-14",
    }


async def test_teacher_records_grade_for_own_student(client, teacher_headers, roster, teacher):
    _, subject, student = roster
    response = await client.post("/api/grades", headers=teacher_headers, json=grade_body(student, subject))
    assert response.status_code == 200
    body = response.json()
    assert body["teacher_id"] == str(teacher.id)
    assert body["percentage"] == 84.0
    assert body["student_name"] == "Sam Student"
    assert body["exam_date"] == "2026-09-14"


async def test_score_above_maximum_is_rejected(client, teacher_headers, roster):
    _, subject, student = roster
    response = await client.post("/api/grades", headers=teacher_headers,
                                 json=grade_body(student, subject, score=51))
    assert response.status_code == 400
    assert response.json()["error"] == "Score cannot exceed the maximum score"


async def test_cannot_grade_student_outside_own_classes(client, teacher_headers, roster, factory):
    _, subject, _ = roster
    other_class = await factory.school_class(name="Grade 8C")
    stranger = await factory.student(name="Stranger", email="stranger@school.org", class_obj=other_class)

    response = await client.post("/api/grades", headers=teacher_headers, json=grade_body(stranger, subject))
    assert response.status_code == 403
    assert response.json()["error"] == "Student is not in any of your classes"


async def test_grade_listing_is_scoped_by_role(client, admin_headers, teacher_headers, roster, teacher, factory):
    _, subject, student = roster
    other_teacher = await factory.teacher(name="Otto", email="otto@school.org")
    other_student = await factory.student(name="Other", email="other@school.org")
    for owner, pupil in ((teacher, student), (other_teacher, other_student)):
        factory.db.add(Grade(student_id=pupil.id, teacher_id=owner.id, subject_id=subject.id,
                             name="Quiz", score=7, max_score=10))
    await factory.db.commit()

    student_headers = auth_headers(await factory.db.get(User, student.user_id))

    assert (await client.get("/api/grades", headers=admin_headers)).json()["count"] == 2

    mine = (await client.get("/api/grades", headers=teacher_headers)).json()["grades"]
    assert [g["student_id"] for g in mine] == [str(student.id)]

    own = (await client.get("/api/grades", headers=student_headers)).json()["grades"]
    assert [g["student_id"] for g in own] == [str(student.id)]


async def test_only_recording_teacher_deletes(client, teacher_headers, roster, teacher, factory):
    _, subject, student = roster
    grade = Grade(student_id=student.id, teacher_id=teacher.id, subject_id=subject.id,
                  name="Quiz", score=7, max_score=10)
    factory.db.add(grade)
    await factory.db.commit()
    other = await factory.teacher(name="Otto", email="otto@school.org")
    other_headers = auth_headers(await factory.db.get(User, other.user_id))

    assert (await client.delete(f"/api/grades/{grade.id}", headers=other_headers)).status_code == 403
    assert (await client.delete(f"/api/grades/{grade.id}", headers=teacher_headers)).status_code == 200
    assert await factory.reload(Grade, grade.id) is None
