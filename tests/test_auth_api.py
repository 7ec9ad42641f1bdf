"""Tests for agency onboarding, agent registration, login and session identity."""

from __future__ import annotations

from datetime import timedelta

from tests.conftest import PASSWORD, bearer, signup
from visa_dashboard.core.security import create_access_token, decode_access_token


async def test_signup_creates_admin_and_returns_token(client):
    body = await signup(client, "Blue Sky Travels", "Owner@BlueSky.com")

    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"
    assert body["user"]["email"] == "owner@bluesky.com"

    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == body["user"]["id"]
    assert claims["tenant_id"] == body["user"]["tenant_id"]
    assert claims["email"] == "owner@bluesky.com"


async def test_signup_seeds_branding_with_agency_name(client):
    body = await signup(client, "  Blue Sky Travels ", "owner@bluesky.com")

    response = await client.get("/settings", headers=bearer(body))

    assert response.status_code == 200
    assert response.json()["agency_name"] == "Blue Sky Travels"
    assert response.json()["logo_url"] is None


async def test_duplicate_agency_is_conflict(client):
    await signup(client, "Blue Sky Travels", "owner@bluesky.com")
    response = await client.post(
        "/signup",
        json={"agency_name": "Blue Sky Travels", "email": "other@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409


async def test_duplicate_email_is_conflict(client):
    await signup(client, "Blue Sky Travels", "owner@bluesky.com")
    response = await client.post(
        "/signup",
        json={"agency_name": "Red Sun Tours", "email": "owner@bluesky.com", "password": PASSWORD},
    )
    assert response.status_code == 409


async def test_login_and_me(client, agency):
    response = await client.post(
        "/login",
        data={"username": "OWNER@bluesky.com", "password": PASSWORD},
    )
    assert response.status_code == 200
    token = response.json()

    me = await client.get("/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["tenant_id"] == agency["tenant_id"]


async def test_login_with_wrong_password(client, agency):
    response = await client.post(
        "/login",
        data={"username": "owner@bluesky.com", "password": "wrong-password"},
    )
    assert response.status_code == 401


async def test_register_agent_into_existing_agency(client, agency):
    response = await client.post(
        "/register",
        json={"email": "agent@bluesky.com", "password": PASSWORD, "tenant_id": agency["tenant_id"]},
    )
    assert response.status_code == 201
    assert response.json()["role"] == "user"
    assert response.json()["tenant_id"] == agency["tenant_id"]


async def test_register_into_unknown_agency(client):
    response = await client.post(
        "/register",
        json={"email": "agent@example.com", "password": PASSWORD, "tenant_id": "missing"},
    )
    assert response.status_code == 404


async def test_requests_without_session_are_rejected(client):
    assert (await client.get("/applications")).status_code == 401
    assert (await client.get("/analytics")).status_code == 401
    assert (await client.get("/settings")).status_code == 401


async def test_token_without_tenant_is_rejected(client, agency):
    token = create_access_token(
        subject=agency["token"]["user"]["id"],
        tenant_id="",
        email="owner@bluesky.com",
        role="admin",
    )
    response = await client.get("/applications", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_token_for_other_tenant_is_rejected(client, agency):
    token = create_access_token(
        subject=agency["token"]["user"]["id"],
        tenant_id="another-tenant",
        email="owner@bluesky.com",
        role="admin",
    )
    response = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_expired_token_is_rejected(client, agency):
    token = create_access_token(
        subject=agency["token"]["user"]["id"],
        tenant_id=agency["tenant_id"],
        email="owner@bluesky.com",
        role="admin",
        expires_delta=timedelta(minutes=-5),
    )
    response = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_health_reports_database(client):
    response = await client.get("/health")
    assert response.json()["database"] == "ok"


async def test_request_id_is_echoed_or_generated(client):
    echoed = await client.get("/health", headers={"X-Request-ID": "req-42"})
    assert echoed.headers["x-request-id"] == "req-42"

    generated = await client.get("/health")
    assert len(generated.headers["x-request-id"]) == 32
