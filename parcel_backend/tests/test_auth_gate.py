"""
Authorization gate tests.

Missing credentials are 401, rejected credentials are 403, and the verified
identity is what ownership checks compare against.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from parcel_backend.app.main import app
from parcel_backend.app.core.config import settings
from parcel_backend.app.core.identity import (
    IdentityVerifier,
    JwtIdentityVerifier,
    IdentityVerificationError,
    VerifiedIdentity,
    get_identity_verifier,
)
from parcel_backend.app.core.jwt import issue_identity_token


def provider_token(claims: dict) -> str:
    """Token signed with the configured key but carrying only `claims` plus expiry."""
    expiry = datetime.now(timezone.utc) + timedelta(minutes=5)
    return jwt.encode({**claims, "exp": expiry}, settings.identity_secret_key, algorithm=settings.identity_algorithm)


@pytest.mark.asyncio
async def test_missing_header_is_unauthorized(client):
    response = await client.get("/v1/payments", params={"email": "a@x.com"})

    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "ERR_AUTH_001"
    assert body["message"] == "Unauthorized access"


@pytest.mark.asyncio
async def test_non_bearer_scheme_is_unauthorized(client):
    response = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": "Basic YTpi"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_forbidden(client):
    response = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_AUTH_002"


@pytest.mark.asyncio
async def test_expired_token_is_forbidden(client):
    token = issue_identity_token("a@x.com", expires_delta=timedelta(minutes=-5))

    response = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_token_without_email_is_forbidden(client):
    token = provider_token({"sub": "user-123"})

    response = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_valid_token_reaches_handler(client, auth_headers):
    response = await client.get("/v1/payments", params={"email": "a@x.com"}, headers=auth_headers("a@x.com"))

    assert response.status_code == 200
    assert response.json() == []
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_identity_check_is_case_sensitive(client, auth_headers):
    response = await client.get("/v1/payments", params={"email": "A@x.com"}, headers=auth_headers("a@x.com"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_verifier_accepts_email_subject():
    token = provider_token({"sub": "a@x.com"})

    identity = await JwtIdentityVerifier().verify(token)

    assert identity.email == "a@x.com"


@pytest.mark.asyncio
async def test_verifier_rejects_foreign_signature():
    token = jwt.encode({"email": "a@x.com"}, "some-other-key", algorithm=settings.identity_algorithm)

    with pytest.raises(IdentityVerificationError):
        await JwtIdentityVerifier().verify(token)


class StaticVerifier(IdentityVerifier):
    async def verify(self, token: str) -> VerifiedIdentity:
        if token != "let-me-in":
            raise IdentityVerificationError("unknown token")
        return VerifiedIdentity(email="a@x.com")


class SlowVerifier(IdentityVerifier):
    async def verify(self, token: str) -> VerifiedIdentity:
        await asyncio.sleep(5)
        return VerifiedIdentity(email="a@x.com")


@pytest.mark.asyncio
async def test_gate_uses_injected_verifier(client):
    app.dependency_overrides[get_identity_verifier] = lambda: StaticVerifier()

    allowed = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": "Bearer let-me-in"}
    )
    denied = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": "Bearer nope"}
    )

    assert allowed.status_code == 200
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_slow_verifier_times_out(client, mocker):
    mocker.patch.object(settings, "identity_timeout_seconds", 0.05)
    app.dependency_overrides[get_identity_verifier] = lambda: SlowVerifier()

    response = await client.get(
        "/v1/payments", params={"email": "a@x.com"}, headers={"Authorization": "Bearer anything"}
    )

    assert response.status_code == 504
    assert response.json()["error_code"] == "ERR_TIMEOUT"
