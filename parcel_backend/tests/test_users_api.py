"""
Integration tests for user endpoints.
"""

import pytest
from sqlalchemy import select

from parcel_backend.app.models.audit_log import AuditLog
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.services.audit import AuditAction, get_audit_trail


@pytest.mark.asyncio
async def test_upsert_creates_then_reports_existing(client, session_factory):
    first = await client.post("/v1/users", json={"email": "a@x.com", "name": "Ayesha"})
    second = await client.post("/v1/users", json={"email": "a@x.com", "name": "Someone Else"})

    assert first.status_code == 200
    assert isinstance(first.json()["insertedId"], int)
    assert second.status_code == 200
    assert second.json() == {"message": "user already exist", "insertedId": False}

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "a@x.com"))).scalar_one()
        assert user.name == "Ayesha"
        assert user.role == UserRole.USER


@pytest.mark.asyncio
async def test_upsert_ignores_client_role(client, session_factory):
    await client.post("/v1/users", json={"email": "a@x.com", "role": "admin"})

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "a@x.com"))).scalar_one()
        assert user.role == UserRole.USER


@pytest.mark.asyncio
async def test_upsert_rejects_bad_email(client):
    response = await client.post("/v1/users", json={"email": "nope"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid email")


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_limited(client, make_user):
    for i in range(12):
        await make_user(f"courier{i:02d}@Example.com")
    await make_user("someone@else.org")

    response = await client.get("/v1/users/search", params={"email": "EXAMPLE"})

    assert response.status_code == 200
    emails = [u["email"] for u in response.json()]
    assert len(emails) == 10
    assert all("example" in e.lower() for e in emails)


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client, make_user):
    await make_user("plain@x.com")

    response = await client.get("/v1/users/search", params={"email": "%"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_requires_query(client):
    response = await client.get("/v1/users/search")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_grants_admin_role(client, session_factory, admin, make_user, auth_headers):
    target = await make_user("a@x.com")

    response = await client.patch(
        f"/v1/users/{target.id}/role", json={"role": "admin"}, headers=auth_headers(admin.email)
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    async with session_factory() as session:
        stored = await session.get(User, target.id)
        assert stored.role == UserRole.ADMIN
        trail = await get_audit_trail(session, target_type="user", target_id=target.id)
        assert [entry.action for entry in trail] == [AuditAction.USER_ROLE_CHANGED]
        assert trail[0].actor_email == admin.email


@pytest.mark.asyncio
async def test_rider_role_cannot_be_assigned_directly(client, admin, make_user, auth_headers):
    target = await make_user("a@x.com")

    response = await client.patch(
        f"/v1/users/{target.id}/role", json={"role": "rider"}, headers=auth_headers(admin.email)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_role_change_requires_admin(client, session_factory, make_user, auth_headers):
    target = await make_user("a@x.com")

    response = await client.patch(
        f"/v1/users/{target.id}/role", json={"role": "admin"}, headers=auth_headers("a@x.com")
    )

    assert response.status_code == 403
    async with session_factory() as session:
        assert (await session.get(User, target.id)).role == UserRole.USER
        audit = await session.execute(select(AuditLog))
        assert audit.scalars().all() == []


@pytest.mark.asyncio
async def test_unregistered_caller_cannot_change_roles(client, make_user, auth_headers):
    target = await make_user("a@x.com")

    response = await client.patch(
        f"/v1/users/{target.id}/role", json={"role": "admin"}, headers=auth_headers("stranger@x.com")
    )

    assert response.status_code == 403
    assert response.json()["message"] == "User is not registered"
