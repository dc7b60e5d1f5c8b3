from datetime import datetime, timezone

from school_portal.models import Event, EventCategory


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


async def add_event(factory, admin, title, start, end, category=EventCategory.OTHER):
    event = Event(admin_id=admin.id, title=title, start_date=start, end_date=end, category=category)
    factory.db.add(event)
    await factory.db.commit()
    return event


async def test_admin_creates_event(client, admin_headers, admin, factory):
    class_obj = await factory.school_class()
    response = await client.post("/api/events", headers=admin_headers, json={
        "title": "Science Fair",
        "start_date": "2026-11-10T09:00:00Z",
        "end_date": "2026-11-10T15:00:00Z",
        "category": "ACADEMIC",
        "class_ids": [str(class_obj.id)],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["admin_id"] == str(admin.id)
    assert body["organizer"] == "Ada Admin"
    assert body["class_ids"] == [str(class_obj.id)]
    assert body["status"] == "UPCOMING"


async def test_end_before_start_is_rejected(client, admin_headers, admin):
    response = await client.post("/api/events", headers=admin_headers, json={
        "title": "Backwards",
        "start_date": "2026-11-10T09:00:00Z",
        "end_date": "2026-11-09T09:00:00Z",
    })
    assert response.status_code == 400
    assert response.json()["error"] == "End date cannot be before start date"


async def test_teachers_list_but_do_not_manage_events(client, teacher_headers, admin, factory):
    event = await add_event(factory, admin, "Sports Day", utc(2026, 12, 1, 8), utc(2026, 12, 1, 16))

    assert (await client.get("/api/events", headers=teacher_headers)).status_code == 200
    assert (await client.get(f"/api/events/{event.id}", headers=teacher_headers)).status_code == 403
    assert (await client.delete(f"/api/events/{event.id}", headers=teacher_headers)).status_code == 403


async def test_list_filters_by_overlapping_window(client, admin_headers, admin, factory):
    await add_event(factory, admin, "Mid-terms", utc(2026, 10, 5), utc(2026, 10, 9), EventCategory.EXAM)
    await add_event(factory, admin, "Diwali break", utc(2026, 11, 7), utc(2026, 11, 12), EventCategory.HOLIDAY)
    await add_event(factory, admin, "PTA meeting", utc(2026, 12, 3, 17), utc(2026, 12, 3, 19), EventCategory.MEETING)

    response = await client.get(
        "/api/events?start_date=2026-10-08T00:00:00Z&end_date=2026-11-08T00:00:00Z",
        headers=admin_headers,
    )
    body = response.json()
    assert [e["title"] for e in body["events"]] == ["Mid-terms", "Diwali break"]
    assert body["meta"]["total"] == 2

    response = await client.get("/api/events?category=MEETING", headers=admin_headers)
    assert [e["title"] for e in response.json()["events"]] == ["PTA meeting"]

    response = await client.get("/api/events?search=diwali", headers=admin_headers)
    assert response.json()["meta"]["total"] == 1


async def test_update_checks_merged_dates(client, admin_headers, admin, factory):
    event = await add_event(factory, admin, "Concert", utc(2026, 12, 18, 18), utc(2026, 12, 18, 21))

    bad = await client.put(f"/api/events/{event.id}", headers=admin_headers,
                           json={"end_date": "2026-12-18T17:00:00Z"})
    assert bad.status_code == 400

    good = await client.put(f"/api/events/{event.id}", headers=admin_headers,
                            json={"location": "Main hall", "status": "CANCELLED"})
    assert good.status_code == 200
    assert good.json()["location"] == "Main hall"
    assert good.json()["status"] == "CANCELLED"


async def test_delete_event(client, admin_headers, admin, factory):
    event = await add_event(factory, admin, "Concert", utc(2026, 12, 18, 18), utc(2026, 12, 18, 21))
    assert (await client.delete(f"/api/events/{event.id}", headers=admin_headers)).status_code == 200
    assert await factory.reload(Event, event.id) is None
    assert (await client.delete(f"/api/events/{event.id}", headers=admin_headers)).status_code == 404
