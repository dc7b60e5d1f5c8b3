from datetime import date, time

from school_portal.models import Exam, ExamSchedule, Subject


async def test_create_subject_echoes_fields(client, admin_headers):
    response = await client.post("/api/subjects", headers=admin_headers, json={
        "name": "Mathematics", "code": "MATH101",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Mathematics"
    assert body["code"] == "MATH101"
    assert body["id"]
    assert body["description"] is None


async def test_subject_name_and_code_unique_ignoring_case(client, admin_headers, factory):
    await factory.subject(name="Mathematics", code="MATH101")

    same_name = await client.post("/api/subjects", headers=admin_headers, json={
        "name": "mathematics", "code": "MATH999",
    })
    same_code = await client.post("/api/subjects", headers=admin_headers, json={
        "name": "Algebra", "code": "math101",
    })
    assert same_name.status_code == same_code.status_code == 409
    assert same_name.json()["error"] == "A subject with this name or code already exists"


async def test_subject_requires_name_and_code(client, admin_headers):
    response = await client.post("/api/subjects", headers=admin_headers, json={"name": "Art"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


async def test_only_admins_create_subjects(client, teacher_headers):
    response = await client.post("/api/subjects", headers=teacher_headers, json={
        "name": "Music", "code": "MUS101",
    })
    assert response.status_code == 403


async def test_list_subjects_by_name_with_search(client, teacher_headers, factory):
    await factory.subject(name="Physics", code="PHY101")
    await factory.subject(name="Biology", code="BIO101")

    response = await client.get("/api/subjects", headers=teacher_headers)
    body = response.json()
    assert [s["name"] for s in body["subjects"]] == ["Biology", "Physics"]
    assert body["meta"]["total"] == 2

    response = await client.get("/api/subjects?search=phy", headers=teacher_headers)
    assert [s["code"] for s in response.json()["subjects"]] == ["PHY101"]


async def test_patch_subject(client, admin_headers, factory):
    subject = await factory.subject(name="Chem", code="CHE101")
    await factory.subject(name="Physics", code="PHY101")

    response = await client.patch(f"/api/subjects/{subject.id}", headers=admin_headers, json={
        "name": "Chemistry", "description": "Lab work included",
    })
    assert response.status_code == 200
    assert response.json()["name"] == "Chemistry"
    assert response.json()["code"] == "CHE101"

    clash = await client.patch(f"/api/subjects/{subject.id}", headers=admin_headers, json={"code": "phy101"})
    assert clash.status_code == 409

    # renaming to its own code is not a clash
    same = await client.patch(f"/api/subjects/{subject.id}", headers=admin_headers, json={"code": "CHE101"})
    assert same.status_code == 200


async def test_delete_subject_in_use_is_409(client, admin_headers, factory, teacher):
    subject = await factory.subject()
    class_obj = await factory.school_class()
    await factory.lesson(class_obj, subject, teacher, start=time(8, 0), end=time(9, 0))

    response = await client.delete(f"/api/subjects/{subject.id}", headers=admin_headers)
    assert response.status_code == 409
    assert await factory.reload(Subject, subject.id) is not None


async def test_delete_unused_subject(client, admin_headers, factory):
    subject = await factory.subject()
    response = await client.delete(f"/api/subjects/{subject.id}", headers=admin_headers)
    assert response.status_code == 200
    assert await factory.reload(Subject, subject.id) is None

    missing = await client.delete(f"/api/subjects/{subject.id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_blank_subject_name_or_code_is_rejected(client, admin_headers, factory):
    created = await client.post("/api/subjects", headers=admin_headers, json={"name": "   ", "code": "ART1"})
    assert created.status_code == 400

    subject = await factory.subject(name="Art", code="ART101")
    for body in ({"name": ""}, {"code": "  "}):
        response = await client.patch(f"/api/subjects/{subject.id}", headers=admin_headers, json=body)
        assert response.status_code == 400
    reloaded = await factory.reload(Subject, subject.id)
    assert (reloaded.name, reloaded.code) == ("Art", "ART101")


async def test_subject_with_exam_paper_cannot_be_deleted(client, admin_headers, factory):
    subject = await factory.subject()
    class_obj = await factory.school_class()
    exam = Exam(name="Mid-terms", start_date=date(2026, 11, 2), end_date=date(2026, 11, 6))
    factory.db.add(exam)
    await factory.db.flush()
    factory.db.add(ExamSchedule(exam_id=exam.id, class_id=class_obj.id, subject_id=subject.id,
                                date=date(2026, 11, 3), start_time=time(9, 0), end_time=time(11, 0)))
    await factory.db.commit()

    response = await client.delete(f"/api/subjects/{subject.id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["details"] == "This subject is being used in timetables, assignments, grades or exams"
