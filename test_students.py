from datetime import date

from sqlalchemy import select

from school_portal.models import (
    Attendance, AttendanceSession, AttendanceStatus, Exam, ExamResult, Grade, Message, Student, User,
)


async def test_create_student_places_in_named_class(client, admin_headers, factory):
    await factory.school_class(name="Grade 9A")
    response = await client.post("/api/students", headers=admin_headers, json={
        "name": "Ravi Kumar",
        "email": "ravi@school.org",
        "class_name": "Grade 9A",
        "roll_number": "9A-07",
        "gender": "male",
        "date_of_birth": "2011-04-02",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["class_name"] == "Grade 9A"
    assert body["date_of_birth"] == "2011-04-02"


async def test_unknown_class_name_leaves_student_unassigned(client, admin_headers):
    response = await client.post("/api/students", headers=admin_headers, json={
        "name": "Lost Kid", "email": "lost@school.org", "class_name": "Grade 99",
    })
    assert response.status_code == 200
    assert response.json()["class_id"] is None
    assert response.json()["class_name"] == "Unassigned"


async def test_create_student_rejects_taken_email(client, admin_headers, teacher):
    response = await client.post("/api/students", headers=admin_headers, json={
        "name": "Dup", "email": "tess@school.org",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "Email is already in use"


async def test_list_students_paginates_and_filters(client, teacher_headers, factory):
    nine_a = await factory.school_class(name="Grade 9A")
    for index, name in enumerate(["Cara", "Abe", "Bea"]):
        await factory.student(name=name, email=f"s{index}@school.org", class_obj=nine_a,
                              roll_number=f"R{index}", gender="female" if name != "Abe" else "male")
    await factory.student(name="Dan", email="dan@school.org")

    response = await client.get("/api/students?limit=2&page=1", headers=teacher_headers)
    body = response.json()
    assert [s["name"] for s in body["students"]] == ["Abe", "Bea"]
    assert body["meta"] == {"total": 4, "page": 1, "limit": 2, "total_pages": 2}

    response = await client.get("/api/students?class_name=Grade%209A&gender=female&order=desc", headers=teacher_headers)
    assert [s["name"] for s in response.json()["students"]] == ["Cara", "Bea"]

    response = await client.get("/api/students?search=r1", headers=teacher_headers)
    assert [s["name"] for s in response.json()["students"]] == ["Abe"]


async def test_update_student_checks_email_excluding_self(client, admin_headers, factory):
    student = await factory.student()
    await factory.student(name="Other", email="other@school.org")

    same = await client.put(f"/api/students/{student.id}", headers=admin_headers, json={
        "name": "Sam Renamed", "email": "sam@school.org",
    })
    assert same.status_code == 200
    assert same.json()["name"] == "Sam Renamed"

    clash = await client.put(f"/api/students/{student.id}", headers=admin_headers, json={
        "name": "Sam", "email": "other@school.org",
    })
    assert clash.status_code == 400


async def test_delete_student_removes_records_and_user(client, admin_headers, factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    subject = await factory.subject()
    student = await factory.student(class_obj=class_obj)
    session = AttendanceSession(class_id=class_obj.id, date=date(2026, 3, 2))
    factory.db.add(session)
    await factory.db.flush()
    factory.db.add(Attendance(session_id=session.id, student_id=student.id, status=AttendanceStatus.PRESENT))
    factory.db.add(Grade(student_id=student.id, teacher_id=teacher.id, subject_id=subject.id,
                         name="Quiz", score=8, max_score=10))
    await factory.db.commit()

    response = await client.delete(f"/api/students/{student.id}", headers=admin_headers)
    assert response.status_code == 200
    assert await factory.reload(Student, student.id) is None
    assert await factory.reload(User, student.user_id) is None

    remaining_grades = (await factory.db.execute(
        select(Grade).where(Grade.student_id == student.id)
    )).scalars().all()
    assert remaining_grades == []
    assert await factory.reload(AttendanceSession, session.id) is not None


async def test_student_detail_is_admin_only(client, teacher_headers, factory):
    student = await factory.student()
    response = await client.get(f"/api/students/{student.id}", headers=teacher_headers)
    assert response.status_code == 403


async def test_delete_student_removes_exam_results_and_messages(client, admin_headers, factory, teacher):
    class_obj = await factory.school_class(teacher=teacher)
    subject = await factory.subject()
    student = await factory.student(class_obj=class_obj)
    exam = Exam(name="Mid-terms", start_date=date(2026, 11, 2), end_date=date(2026, 11, 6))
    factory.db.add(exam)
    await factory.db.flush()
    factory.db.add_all([
        ExamResult(exam_id=exam.id, student_id=student.id, subject_id=subject.id, marks=40, max_marks=50),
        Message(sender_id=student.user_id, receiver_id=teacher.user_id, content="Question"),
        Message(sender_id=teacher.user_id, receiver_id=student.user_id, content="Answer"),
    ])
    await factory.db.commit()

    response = await client.delete(f"/api/students/{student.id}", headers=admin_headers)
    assert response.status_code == 200

    assert (await factory.db.execute(select(ExamResult))).scalars().all() == []
    assert (await factory.db.execute(select(Message))).scalars().all() == []
    assert await factory.reload(Exam, exam.id) is not None
