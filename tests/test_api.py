"""API tests for the HTTP routes.

Requests go through httpx over ASGITransport against an application wired
to the test databases, bearer tokens are signed with a test secret.
"""

from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from teamauth.core import config
from teamauth.features.users.auth import create_token
from teamauth.limiter import limiter
from teamauth.main import create_app


SECRET = "test-secret-with-at-least-32-bytes!!"


@pytest_asyncio.fixture
async def client(application, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    monkeypatch.setattr(config, "JWT_SECRET", SECRET)
    limiter.reset()
    transport = ASGITransport(app=create_app(application))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth(user: Dict[str, Any]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_token(user['_id'], SECRET)}"}


async def register(client: AsyncClient, name: str) -> Dict[str, Any]:
    response = await client.post("/users/", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


class TestUsers:

    async def test_registration_is_public(self, client):
        user = await register(client, "Alice")
        assert user["name"] == "Alice"

        response = await client.get("/users/me", headers=auth(user))
        assert response.status_code == 200
        assert response.json()["_id"] == user["_id"]

    async def test_private_organisation_is_listed(self, client):
        user = await register(client, "Alice")
        response = await client.get("/organisations/", headers=auth(user))
        assert response.status_code == 200
        assert [organisation["_id"] for organisation in response.json()] == [user["_id"]]

    async def test_profiles_are_private_to_anonymous(self, client):
        user = await register(client, "Alice")
        response = await client.get(f"/users/{user['_id']}")
        assert response.status_code == 403

    async def test_users_update_only_themselves(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")

        response = await client.patch(f"/users/{bob['_id']}", json={"name": "Robert"}, headers=auth(alice))
        assert response.status_code == 403
        response = await client.patch(f"/users/{alice['_id']}", json={"name": "Alicia"}, headers=auth(alice))
        assert response.status_code == 200
        assert response.json()["name"] == "Alicia"

    async def test_sole_owner_cannot_delete_account(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        beta = (await client.post("/organisations/", json={"name": "Beta"}, headers=auth(bob))).json()
        await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "member",
            "subject_id": alice["_id"],
            "resource_id": beta["_id"],
        }, headers=auth(bob))

        response = await client.delete(f"/users/{bob['_id']}", headers=auth(bob))
        assert response.status_code == 403
        assert response.json()["data"]["translation"]["key"] == "CANNOT_REMOVE_LAST_OWNER"

        response = await client.delete(f"/users/{alice['_id']}", headers=auth(alice))
        assert response.status_code == 200

    async def test_invalid_token_is_rejected(self, client):
        response = await client.get("/users/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_unknown_user_is_not_found(self, client):
        alice = await register(client, "Alice")
        response = await client.get("/users/01ARZ3NDEKTSV4RRFFQ69G5FAV", headers=auth(alice))
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"


class TestOrganisations:

    async def test_create_and_read(self, client):
        alice = await register(client, "Alice")
        response = await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))
        assert response.status_code == 201
        acme = response.json()

        response = await client.get(f"/organisations/{acme['_id']}", headers=auth(alice))
        assert response.status_code == 200
        assert response.json()["name"] == "Acme"

    async def test_anonymous_must_authenticate(self, client):
        response = await client.post("/organisations/", json={"name": "Acme"})
        assert response.status_code == 401

    async def test_outsiders_cannot_read(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        acme = (await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))).json()

        response = await client.get(f"/organisations/{acme['_id']}", headers=auth(bob))
        assert response.status_code == 403
        response = await client.get("/organisations/", headers=auth(bob))
        assert [organisation["_id"] for organisation in response.json()] == [bob["_id"]]

    async def test_only_owners_delete(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        acme = (await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))).json()
        response = await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "manager",
            "subject_id": bob["_id"],
            "resource_id": acme["_id"],
        }, headers=auth(alice))
        assert response.status_code == 201

        response = await client.patch(f"/organisations/{acme['_id']}", json={"name": "Acme Inc"}, headers=auth(bob))
        assert response.status_code == 200
        response = await client.delete(f"/organisations/{acme['_id']}", headers=auth(bob))
        assert response.status_code == 403
        response = await client.delete(f"/organisations/{acme['_id']}", headers=auth(alice))
        assert response.status_code == 200

        response = await client.get(f"/organisations/{acme['_id']}", headers=auth(alice))
        assert response.status_code == 404


class TestGroups:

    async def test_managers_create_groups(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        acme = (await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))).json()
        await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "member",
            "subject_id": bob["_id"],
            "resource_id": acme["_id"],
        }, headers=auth(alice))

        response = await client.post(f"/organisations/{acme['_id']}/groups", json={"name": "Team"}, headers=auth(bob))
        assert response.status_code == 403
        response = await client.post(f"/organisations/{acme['_id']}/groups", json={"name": "Team"}, headers=auth(alice))
        assert response.status_code == 201
        group = response.json()

        response = await client.get(f"/organisations/{acme['_id']}/groups", headers=auth(alice))
        assert [g["_id"] for g in response.json()] == [group["_id"]]
        # Bob is not in the group
        response = await client.get(f"/organisations/{acme['_id']}/groups", headers=auth(bob))
        assert response.json() == []

    async def test_outsiders_cannot_reach_groups_service(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        response = await client.get(f"/organisations/{alice['_id']}/groups", headers=auth(bob))
        assert response.status_code == 403


class TestAuthorisations:

    async def test_removing_last_owner_is_forbidden(self, client):
        alice = await register(client, "Alice")
        acme = (await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))).json()

        response = await client.delete(
            f"/authorisations/{acme['_id']}",
            params={"scope": "organisations", "subject_id": alice["_id"]},
            headers=auth(alice),
        )
        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "Forbidden"
        assert body["data"]["translation"] == {"key": "CANNOT_REMOVE_LAST_OWNER", "params": {"resource": "Acme"}}

    async def test_members_cannot_manage_authorisations(self, client):
        alice = await register(client, "Alice")
        bob = await register(client, "Bob")
        acme = (await client.post("/organisations/", json={"name": "Acme"}, headers=auth(alice))).json()
        await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "member",
            "subject_id": bob["_id"],
            "resource_id": acme["_id"],
        }, headers=auth(alice))

        response = await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "owner",
            "subject_id": bob["_id"],
            "resource_id": acme["_id"],
        }, headers=auth(bob))
        assert response.status_code == 403

    async def test_invalid_role_is_rejected(self, client):
        alice = await register(client, "Alice")
        response = await client.post("/authorisations/", json={
            "scope": "organisations",
            "permissions": "admin",
            "subject_id": alice["_id"],
            "resource_id": alice["_id"],
        }, headers=auth(alice))
        assert response.status_code == 400


class TestAbilities:

    async def test_anonymous_rules(self, client):
        response = await client.get("/abilities/")
        assert response.status_code == 200
        body = response.json()
        assert body["subject_id"] is None
        assert {"operations": ["create"], "resource_types": ["users"], "conditions": None, "inverted": False} in body["rules"]

    async def test_rules_follow_memberships(self, client):
        alice = await register(client, "Alice")
        response = await client.get("/abilities/", headers=auth(alice))
        body = response.json()
        assert body["subject_id"] == alice["_id"]
        assert {
            "operations": ["remove"],
            "resource_types": ["organisations"],
            "conditions": {"_id": alice["_id"]},
            "inverted": False,
        } in body["rules"]


@pytest.mark.parametrize("path", ["/", "/health"])
async def test_status_endpoints(client, path):
    response = await client.get(path)
    assert response.status_code == 200
