from conftest import PASSWORD

from school_portal.core.security import decode_session_token
from school_portal.models import User, UserRole


async def test_login_issues_session_with_stored_role(client, factory):
    accounts = (
        (factory.admin, "admin@school.org", UserRole.ADMIN),
        (factory.teacher, "tess@school.org", UserRole.TEACHER),
        (factory.student, "sam@school.org", UserRole.STUDENT),
    )
    for make, email, role in accounts:
        profile = await make()
        response = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == role.value

        session = decode_session_token(body["access_token"])
        assert session.role == role
        assert session.user_id == str(profile.user_id)


async def test_login_sets_http_only_cookie(client, admin):
    response = await client.post("/api/auth/login", json={"email": "admin@school.org", "password": PASSWORD})
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("session_token=")
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()


async def test_login_matches_email_ignoring_case_and_spaces(client, admin):
    response = await client.post("/api/auth/login", json={"email": "  Admin@School.ORG ", "password": PASSWORD})
    assert response.status_code == 200


async def test_unknown_email_and_wrong_password_look_the_same(client, admin):
    wrong_password = await client.post("/api/auth/login", json={"email": "admin@school.org", "password": "nope"})
    unknown_email = await client.post("/api/auth/login", json={"email": "ghost@school.org", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}


async def test_user_without_password_cannot_log_in(client, db):
    db.add(User(email="nopass@school.org", name="No Pass", role=UserRole.STUDENT, password_hash=None))
    await db.commit()

    response = await client.post("/api/auth/login", json={"email": "nopass@school.org", "password": ""})
    assert response.status_code == 401


async def test_plaintext_stored_password_is_not_accepted(client, db):
    db.add(User(email="legacy@school.org", name="Legacy", role=UserRole.TEACHER, password_hash="hunter2"))
    await db.commit()

    response = await client.post("/api/auth/login", json={"email": "legacy@school.org", "password": "hunter2"})
    assert response.status_code == 401


async def test_session_endpoint_reports_current_user(client, admin_headers):
    anonymous = await client.get("/api/auth/session")
    assert anonymous.json() == {"authenticated": False, "user": None}

    response = await client.get("/api/auth/session", headers=admin_headers)
    body = response.json()
    assert body["authenticated"] is True
    assert body["user"]["email"] == "admin@school.org"
    assert body["user"]["role"] == "ADMIN"


async def test_logout_clears_cookie(client):
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    assert 'session_token=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]


async def test_login_form_redirects_to_dashboard(client, teacher):
    response = await client.post(
        "/login", data={"email": "tess@school.org", "password": PASSWORD, "callback_url": ""}
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/teacher/dashboard"
    assert "session_token=" in response.headers["set-cookie"]


async def test_login_form_honours_local_callback_only(client, teacher):
    local = await client.post(
        "/login", data={"email": "tess@school.org", "password": PASSWORD, "callback_url": "/teacher/classes"}
    )
    assert local.headers["location"] == "/teacher/classes"

    foreign = await client.post(
        "/login", data={"email": "tess@school.org", "password": PASSWORD, "callback_url": "//evil.example"}
    )
    assert foreign.headers["location"] == "/teacher/dashboard"


async def test_login_form_failure_rerenders_with_error(client, teacher):
    response = await client.post("/login", data={"email": "tess@school.org", "password": "bad"})
    assert response.status_code == 401
    assert "Invalid email or password" in response.text


async def test_login_page_renders(client):
    response = await client.get("/login?callback_url=/admin/dashboard")
    assert response.status_code == 200
    assert 'value="/admin/dashboard"' in response.text


async def test_unauthorized_page_is_403(client):
    response = await client.get("/unauthorized")
    assert response.status_code == 403
