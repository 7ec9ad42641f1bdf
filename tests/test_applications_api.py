"""Tests for the tenant-scoped applications endpoints."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta, timezone

import pytest

from tests.conftest import NOW, application_payload, bearer, signup


@pytest.fixture()
async def rival(client):
    body = await signup(client, "Red Sun Tours", "owner@redsun.com")
    return {"headers": bearer(body), "tenant_id": body["user"]["tenant_id"]}


async def test_create_forces_pending_and_stamps_session(client, agency):
    response = await client.post(
        "/applications",
        json=application_payload(application_status="APPROVED", email="", middle_name="  "),
        headers=agency["headers"],
    )

    assert response.status_code == 201
    data = response.json()
    assert data["application_status"] == "PENDING"
    assert data["tenant_id"] == agency["tenant_id"]
    assert data["agent_id"] == "owner@bluesky.com"
    assert data["email"] is None
    assert data["middle_name"] is None
    assert data["profit"] == 600
    assert data["profit_margin"] == 60
    assert data["submitted_at"] == data["last_updated_at"]


async def test_create_rejects_missing_required_fields(client, agency):
    payload = application_payload()
    del payload["passport_no"]
    response = await client.post("/applications", json=payload, headers=agency["headers"])
    assert response.status_code == 422


async def test_create_rejects_invalid_email(client, agency):
    response = await client.post(
        "/applications", json=application_payload(email="not-an-email"), headers=agency["headers"]
    )
    assert response.status_code == 422


async def test_zero_fees_has_no_margin(client, agency):
    response = await client.post(
        "/applications", json=application_payload(fees=0, costs=50), headers=agency["headers"]
    )
    assert response.json()["profit"] == -50
    assert response.json()["profit_margin"] is None


async def test_get_one(client, agency, seed):
    app_id = await seed(agency["tenant_id"], first_name="Sara")
    response = await client.get(f"/applications/{app_id}", headers=agency["headers"])
    assert response.status_code == 200
    assert response.json()["first_name"] == "Sara"


async def test_missing_application_is_404(client, agency):
    response = await client.get("/applications/999", headers=agency["headers"])
    assert response.status_code == 404


async def test_other_tenants_records_are_invisible(client, agency, rival, seed):
    theirs = await seed(rival["tenant_id"], first_name="Hidden")
    await seed(agency["tenant_id"], first_name="Mine")

    listed = await client.get("/applications", headers=agency["headers"])
    assert [item["first_name"] for item in listed.json()["items"]] == ["Mine"]

    headers = agency["headers"]
    assert (await client.get(f"/applications/{theirs}", headers=headers)).status_code == 404
    assert (
        await client.patch(f"/applications/{theirs}", json={"fees": 1}, headers=headers)
    ).status_code == 404
    assert (await client.delete(f"/applications/{theirs}", headers=headers)).status_code == 404

    still_there = await client.get(f"/applications/{theirs}", headers=rival["headers"])
    assert still_there.json()["fees"] == 1000


async def test_patch_writes_only_sent_fields(client, agency, seed):
    app_id = await seed(agency["tenant_id"], first_name="Sara", fees=1000, costs=400)

    response = await client.patch(
        f"/applications/{app_id}",
        json={"fees": 1500, "whatsapp_sent": True},
        headers=agency["headers"],
    )

    assert response.status_code == 200
    data = response.json()
    assert data["fees"] == 1500
    assert data["costs"] == 400
    assert data["profit"] == 1100
    assert data["whatsapp_sent"] is True
    assert data["first_name"] == "Sara"
    assert datetime.fromisoformat(data["last_updated_at"]).replace(tzinfo=None) > NOW.replace(tzinfo=None)
    assert datetime.fromisoformat(data["submitted_at"]).replace(tzinfo=None) == NOW.replace(tzinfo=None)


async def test_patch_status(client, agency, seed):
    app_id = await seed(agency["tenant_id"])
    response = await client.patch(
        f"/applications/{app_id}",
        json={"application_status": "APPROVED"},
        headers=agency["headers"],
    )
    assert response.json()["application_status"] == "APPROVED"


async def test_patch_can_clear_optional_fields(client, agency, seed):
    app_id = await seed(agency["tenant_id"], middle_name="Noor", agent_notes="call back")
    response = await client.patch(
        f"/applications/{app_id}",
        json={"middle_name": "", "agent_notes": None},
        headers=agency["headers"],
    )
    assert response.json()["middle_name"] is None
    assert response.json()["agent_notes"] is None


@pytest.mark.parametrize(
    "body",
    [
        {"first_name": None},
        {"fees": None},
        {"application_status": "ARCHIVED"},
        {"first_name": ""},
    ],
)
async def test_patch_rejects_invalid_values(client, agency, seed, body):
    app_id = await seed(agency["tenant_id"])
    response = await client.patch(f"/applications/{app_id}", json=body, headers=agency["headers"])
    assert response.status_code == 422


async def test_empty_patch_leaves_record_untouched(client, agency, seed):
    app_id = await seed(agency["tenant_id"])
    before = (await client.get(f"/applications/{app_id}", headers=agency["headers"])).json()

    response = await client.patch(f"/applications/{app_id}", json={}, headers=agency["headers"])

    assert response.status_code == 200
    assert response.json() == before


async def test_delete(client, agency, seed):
    app_id = await seed(agency["tenant_id"])

    response = await client.delete(f"/applications/{app_id}", headers=agency["headers"])

    assert response.status_code == 204
    assert (await client.get(f"/applications/{app_id}", headers=agency["headers"])).status_code == 404


async def test_list_view_parameters(client, agency, seed):
    tenant = agency["tenant_id"]
    await seed(tenant, first_name="Sara", last_name="Malik", application_status="APPROVED",
               submitted_at=NOW - timedelta(days=2))
    await seed(tenant, first_name="Omar", last_name="Farooq", destination="Germany",
               submitted_at=NOW - timedelta(hours=1))
    await seed(tenant, first_name="Ali", last_name="Malik", application_status="REJECTED",
               submitted_at=NOW - timedelta(days=45))

    async def names(**params):
        response = await client.get("/applications", params=params, headers=agency["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == len(body["items"])
        return [item["first_name"] for item in body["items"]]

    assert await names() == ["Omar", "Sara", "Ali"]
    assert await names(window="Month") == ["Omar", "Sara"]
    assert await names(window="Today") == ["Omar"]
    assert await names(q="MALIK") == ["Sara", "Ali"]
    assert await names(q="germany") == ["Omar"]
    assert await names(status="REJECTED") == ["Ali"]
    assert await names(sort="oldest") == ["Ali", "Sara", "Omar"]
    assert await names(sort="name") == ["Omar", "Ali", "Sara"]


async def test_list_rejects_unknown_filters(client, agency):
    headers = agency["headers"]
    assert (await client.get("/applications", params={"status": "LOST"}, headers=headers)).status_code == 422
    assert (await client.get("/applications", params={"window": "Decade"}, headers=headers)).status_code == 422
    assert (await client.get("/applications", params={"sort": "random"}, headers=headers)).status_code == 422


async def test_export_csv(client, agency, seed):
    await seed(agency["tenant_id"], first_name="Jane", last_name="Doe, Jr",
               submitted_at=datetime(2024, 6, 3, tzinfo=timezone.utc))
    await seed(agency["tenant_id"], first_name="Old", submitted_at=datetime(2023, 1, 1, tzinfo=timezone.utc))

    response = await client.get(
        "/applications/export", params={"window": "Month"}, headers=agency["headers"]
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="applications_month.csv"'
    rows = list(csv.reader(io.StringIO(response.text)))
    assert len(rows) == 2
    row = dict(zip(rows[0], rows[1]))
    assert row["last_name"] == "Doe, Jr"
    assert row["profit"] == "600"


async def test_export_custom_filename(client, agency):
    headers = agency["headers"]
    response = await client.get(
        "/applications/export", params={"filename": "june-report.csv"}, headers=headers
    )
    assert response.headers["content-disposition"] == 'attachment; filename="june-report.csv"'

    bad = await client.get(
        "/applications/export", params={"filename": "../etc/passwd"}, headers=headers
    )
    assert bad.status_code == 422
