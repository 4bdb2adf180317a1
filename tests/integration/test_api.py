import re

import pytest

from bizmanager.api import dependencies
from bizmanager.api.main import app
from bizmanager.utils.throttle import PasswordResetThrottle

TOKEN_IN_LINK = re.compile(r"token=([0-9a-f]{64})")


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_admin_health_checks_database(client):
    response = await client.get("/admin/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    registered = await client.post(
        "/auth/register", json={"email": "jane@example.com", "password": "correct-horse", "name": "Jane"}
    )
    assert registered.status_code == 201
    assert registered.json()["user"]["email"] == "jane@example.com"

    login = await client.post("/auth/login", json={"email": "jane@example.com", "password": "correct-horse"})
    assert login.status_code == 200
    body = login.json()
    assert body["tokenType"] == "bearer"
    assert "expiresAt" in body
    assert "passwordHash" not in body["user"]

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Jane"
    assert me.json()["role"] == "USER"


@pytest.mark.asyncio
async def test_duplicate_registration_is_409(client, auth_headers):
    response = await client.post(
        "/auth/register", json={"email": "OWNER@example.com", "password": "another-pass"}
    )

    assert response.status_code == 409
    assert response.json()["code"] == "conflict"


@pytest.mark.asyncio
async def test_registration_validates_input(client):
    response = await client.post("/auth/register", json={"email": "not-an-email", "password": "short"})

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert len(body["errors"]) == 2


@pytest.mark.asyncio
async def test_wrong_password_is_401_with_generic_message(client, auth_headers):
    bodies = []
    for email in ("owner@example.com", "ghost@example.com"):
        response = await client.post("/auth/login", json={"email": email, "password": "wrong-horse"})
        assert response.status_code == 401
        bodies.append(response.json())

    assert bodies[0] == bodies[1] == {"detail": "Invalid credentials", "code": "invalid_credentials"}


@pytest.mark.asyncio
async def test_protected_routes_require_a_token(client):
    assert (await client.get("/people")).status_code == 401
    assert (await client.get("/auth/me")).status_code == 401
    response = await client.get("/people", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_is_stateless(client, auth_headers):
    response = await client.post("/auth/logout", headers=auth_headers)

    assert response.status_code == 200
    # The token is not revoked server-side; it only expires.
    assert (await client.get("/auth/me", headers=auth_headers)).status_code == 200


@pytest.mark.asyncio
async def test_password_reset_flow(client, auth_headers, mailer):
    known = await client.post("/auth/password-reset/request", json={"email": "owner@example.com"})
    unknown = await client.post("/auth/password-reset/request", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(mailer.messages) == 1

    token = TOKEN_IN_LINK.search(mailer.messages[0].body).group(1)
    confirm = await client.post(
        "/auth/password-reset/confirm", json={"token": token, "newPassword": "battery-staple"}
    )
    assert confirm.status_code == 200

    replay = await client.post(
        "/auth/password-reset/confirm", json={"token": token, "newPassword": "battery-staple-2"}
    )
    assert replay.status_code == 400
    assert replay.json()["code"] == "invalid_token"

    login = await client.post("/auth/login", json={"email": "owner@example.com", "password": "battery-staple"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_password_reset_requests_are_throttled(client, stub_redis):
    app.dependency_overrides[dependencies.get_throttle] = lambda: PasswordResetThrottle(stub_redis, max_attempts=3)

    statuses = []
    for _ in range(4):
        response = await client.post("/auth/password-reset/request", json={"email": "ghost@example.com"})
        statuses.append(response.status_code)

    assert statuses == [200, 200, 200, 429]
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_person_lifecycle(client, auth_headers):
    created = await client.post("/people", json={"name": "Jane Doe", "status": "LEAD"}, headers=auth_headers)
    assert created.status_code == 201
    person = created.json()
    assert person["status"] == "LEAD"
    assert person["createdById"] is not None
    assert person["dynamicFields"] == []

    patched = await client.patch(f"/people/{person['id']}", json={"status": "CUSTOMER"}, headers=auth_headers)
    assert patched.status_code == 200
    assert patched.json()["updatedAt"] > person["updatedAt"]

    fetched = await client.get(f"/people/{person['id']}", headers=auth_headers)
    assert fetched.json()["status"] == "CUSTOMER"
    assert fetched.json()["name"] == "Jane Doe"

    deleted = await client.delete(f"/people/{person['id']}", headers=auth_headers)
    assert deleted.status_code == 204
    assert (await client.get(f"/people/{person['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_patch_with_null_dynamic_fields_keeps_them(client, auth_headers):
    created = await client.post(
        "/people",
        json={
            "name": "Jane Doe",
            "dynamicFields": [{"fieldName": "site", "fieldType": "URL", "value": "https://acme.example"}],
        },
        headers=auth_headers,
    )
    person_id = created.json()["id"]

    patched = await client.patch(
        f"/people/{person_id}", json={"status": "CUSTOMER", "dynamicFields": None}, headers=auth_headers
    )

    assert patched.status_code == 200
    assert [field["fieldName"] for field in patched.json()["dynamicFields"]] == ["site"]


@pytest.mark.asyncio
async def test_overlong_person_values_are_rejected_as_validation_errors(client, auth_headers):
    response = await client.post(
        "/people",
        json={"name": "x" * 256, "phone": "1" * 65},
        headers=auth_headers,
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert any(error.startswith("name") for error in body["errors"])
    assert any(error.startswith("phone") for error in body["errors"])


@pytest.mark.asyncio
async def test_person_validation_lists_all_errors(client, auth_headers):
    response = await client.post(
        "/people",
        json={
            "email": "nope",
            "dynamicFields": [
                {"fieldName": "age", "fieldType": "NUMBER", "value": "old"},
                {"fieldName": "site", "fieldType": "URL", "value": "not a url"},
            ],
        },
        headers=auth_headers,
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert "name is required" in errors
    assert "email has an invalid format" in errors
    assert len([error for error in errors if error.startswith("dynamicFields")]) == 2


@pytest.mark.asyncio
async def test_listing_by_category_with_total_header(client, auth_headers):
    for name, status in (("Ann", "CUSTOMER"), ("Ben", "VENDOR"), ("Cat", "FRIEND"), ("Dan", "FAMILY")):
        response = await client.post("/people", json={"name": name, "status": status}, headers=auth_headers)
        assert response.status_code == 201

    business = await client.get("/people", params={"status": "BUSINESS", "sort": "name"}, headers=auth_headers)
    personal = await client.get("/people", params={"status": "PERSONAL"}, headers=auth_headers)
    vendors = await client.get("/people", params={"status": "VENDOR"}, headers=auth_headers)
    everyone = await client.get("/people", params={"limit": 3}, headers=auth_headers)

    assert [person["name"] for person in business.json()] == ["Ann", "Ben"]
    assert {person["name"] for person in personal.json()} == {"Cat", "Dan"}
    assert [person["name"] for person in vendors.json()] == ["Ben"]
    assert len(everyone.json()) == 3
    assert everyone.headers["X-Total-Count"] == "4"

    bad = await client.get("/people", params={"status": "VIP"}, headers=auth_headers)
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_dynamic_field_endpoints(client, auth_headers):
    person = (await client.post("/people", json={"name": "Jane"}, headers=auth_headers)).json()

    added = await client.post(
        f"/people/{person['id']}/fields",
        json={"fieldName": "birthday", "fieldType": "DATE", "value": "1990-06-15T00:00:00"},
        headers=auth_headers,
    )
    assert added.status_code == 201
    field = added.json()
    assert field["dateValue"].startswith("1990-06-15")
    assert field["stringValue"] is None

    removed = await client.delete(f"/people/fields/{field['id']}", headers=auth_headers)
    assert removed.status_code == 204
    assert (await client.delete(f"/people/fields/{field['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_interactions_and_tags(client, auth_headers):
    person = (await client.post("/people", json={"name": "Jane"}, headers=auth_headers)).json()
    tag = (await client.post("/tags", json={"name": "follow-up"}, headers=auth_headers)).json()

    created = await client.post(
        "/interactions",
        json={"personId": person["id"], "type": "CALL", "notes": "Intro call", "tagIds": [tag["id"]]},
        headers=auth_headers,
    )
    assert created.status_code == 201
    interaction = created.json()
    assert [item["name"] for item in interaction["tags"]] == ["follow-up"]

    listed = await client.get("/interactions", params={"personId": person["id"]}, headers=auth_headers)
    assert [item["id"] for item in listed.json()] == [interaction["id"]]

    refreshed = await client.get(f"/people/{person['id']}", headers=auth_headers)
    assert refreshed.json()["lastInteraction"] is not None

    top = await client.get("/tags/top", headers=auth_headers)
    assert top.json()[0]["usageCount"] == 1

    untagged = await client.delete(
        f"/interactions/{interaction['id']}/tags", params={"tagIds": [tag["id"]]}, headers=auth_headers
    )
    assert untagged.json()["tags"] == []

    duplicate = await client.post("/tags", json={"name": "follow-up"}, headers=auth_headers)
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_admin_config_requires_admin(client, auth_headers, admin_headers):
    assert (await client.get("/admin/config", headers=auth_headers)).status_code == 403

    response = await client.get("/admin/config", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["database_backend"] == "sqlite"


@pytest.mark.asyncio
async def test_metrics_exposes_request_counters(client, auth_headers):
    await client.get("/health")
    await client.get("/people/does-not-exist", headers=auth_headers)

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "bizmanager_http_requests_total" in response.text
    assert 'route="/people/{person_id}"' in response.text
    assert 'status_class="4xx"' in response.text
    assert "does-not-exist" not in response.text
