"""Shared pytest fixtures for the API, service and console tests."""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from typing import Any

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from main import create_application  # noqa: E402
from visa_dashboard.db.session import get_db  # noqa: E402
from visa_dashboard.dependencies import get_now  # noqa: E402
from visa_dashboard.models import Base, VisaApplication  # noqa: E402
from visa_dashboard.schemas.application import ApplicationRead  # noqa: E402

# Fixed reference time for every calendar window in the tests
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

PASSWORD = "Secret123!"


def make_record(id: int = 1, **overrides: Any) -> ApplicationRead:
    """An ApplicationRead with sensible defaults, for pure function tests."""
    data = {
        "id": id,
        "tenant_id": "tenant-1",
        "first_name": "Ahmed",
        "middle_name": None,
        "last_name": "Khan",
        "date_of_birth": date(1990, 1, 1),
        "gender": "Male",
        "passport_no": f"P{id:05d}",
        "whatsapp_number": "+971500000000",
        "email": None,
        "destination": "Canada",
        "visa_type": "Tourist",
        "application_status": "PENDING",
        "fees": 1000.0,
        "costs": 400.0,
        "whatsapp_sent": False,
        "submitted_at": NOW,
        "last_updated_at": NOW,
        "agent_notes": None,
        "document_urls": [],
        "agent_id": "agent@example.com",
    }
    data.update(overrides)
    return ApplicationRead.model_validate(data)


def application_payload(**overrides: Any) -> dict[str, Any]:
    """JSON body for POST /applications."""
    payload = {
        "first_name": "Ahmed",
        "last_name": "Khan",
        "date_of_birth": "1990-01-01",
        "gender": "Male",
        "passport_no": "AB123456",
        "whatsapp_number": "+971500000000",
        "destination": "Canada",
        "visa_type": "Tourist",
        "fees": 1000,
        "costs": 400,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
async def session_factory():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture()
async def client(session_factory):
    app = create_application()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def signup(client: AsyncClient, agency: str, email: str) -> dict[str, Any]:
    """Onboard an agency and return the token response body."""
    response = await client.post(
        "/signup",
        json={"agency_name": agency, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token_body: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_body['access_token']}"}


@pytest.fixture()
async def agency(client):
    """Signed-up agency: token response plus ready-made auth headers."""
    body = await signup(client, "Blue Sky Travels", "owner@bluesky.com")
    return {"token": body, "headers": bearer(body), "tenant_id": body["user"]["tenant_id"]}


@pytest.fixture()
def seed(session_factory):
    """Insert applications directly, with explicit submitted_at timestamps."""

    async def _seed(tenant_id: str, **overrides: Any) -> int:
        data = {
            "tenant_id": tenant_id,
            "first_name": "Ahmed",
            "last_name": "Khan",
            "date_of_birth": date(1990, 1, 1),
            "passport_no": "AB123456",
            "whatsapp_number": "+971500000000",
            "destination": "Canada",
            "visa_type": "Tourist",
            "application_status": "PENDING",
            "fees": 1000.0,
            "costs": 400.0,
            "submitted_at": NOW,
            "last_updated_at": NOW,
            "agent_id": "owner@bluesky.com",
        }
        data.update(overrides)
        async with session_factory() as session:
            application = VisaApplication(**data)
            session.add(application)
            await session.commit()
            return application.id

    return _seed
