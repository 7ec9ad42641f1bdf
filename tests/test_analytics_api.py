"""Tests for the analytics endpoints."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone


async def _seed_two_months(seed, tenant_id):
    june = datetime(2024, 6, 10, tzinfo=timezone.utc)
    may = datetime(2024, 5, 10, tzinfo=timezone.utc)
    await seed(tenant_id, application_status="APPROVED", fees=1000, costs=400, submitted_at=june)
    await seed(tenant_id, application_status="PENDING", fees=500, costs=200, submitted_at=june)
    await seed(tenant_id, application_status="APPROVED", fees=600, costs=300, submitted_at=may)


async def test_window_report(client, agency, seed):
    await _seed_two_months(seed, agency["tenant_id"])

    response = await client.get("/analytics", params={"window": "Month"}, headers=agency["headers"])

    assert response.status_code == 200
    report = response.json()
    assert report["window"] == "Month"
    assert report["current"]["total_applications"] == 2
    assert report["previous"]["total_applications"] == 1

    metrics = {m["key"]: m for m in report["metrics"]}
    assert metrics["applications"]["change_percent_label"] == "100.0%"
    assert metrics["revenue"]["value"] == 300
    assert metrics["revenue"]["change_percent_label"] == "—"
    assert metrics["success"]["value"] == 50
    assert metrics["success"]["change"] == -50
    assert metrics["success"]["trend"] == "down"
    assert metrics["success"]["change_percent_label"] == "—"
    assert metrics["total"]["value"] == 600
    assert metrics["total"]["change_percent"] == 100.0

    breakdown = {s["name"]: s["value"] for s in report["status_breakdown"]}
    assert breakdown == {"APPROVED": 1, "PENDING": 1, "REJECTED": 0}


async def test_window_report_defaults_to_month(client, agency):
    response = await client.get("/analytics", headers=agency["headers"])
    assert response.json()["window"] == "Month"
    assert response.json()["current"]["success_rate"] == 0


async def test_window_report_is_tenant_scoped(client, agency, seed):
    await seed("someone-else", application_status="APPROVED")
    response = await client.get("/analytics", headers=agency["headers"])
    assert response.json()["current"]["total_applications"] == 0


async def test_unknown_window_is_rejected(client, agency):
    response = await client.get("/analytics", params={"window": "Decade"}, headers=agency["headers"])
    assert response.status_code == 422


async def test_monthly_history(client, agency, seed):
    await _seed_two_months(seed, agency["tenant_id"])

    response = await client.get("/analytics/monthly", headers=agency["headers"])

    buckets = response.json()
    assert len(buckets) == 12
    assert (buckets[-1]["month"], buckets[-1]["year"]) == ("Jun", 2024)
    assert buckets[-1]["applications"] == 2
    assert buckets[-1]["revenue"] == 600
    assert buckets[-1]["pending"] == 1
    assert buckets[-2]["success_rate"] == 100


async def test_monthly_export(client, agency, seed):
    await _seed_two_months(seed, agency["tenant_id"])

    response = await client.get(
        "/analytics/monthly/export", params={"window": "Year"}, headers=agency["headers"]
    )

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="analytics_year.csv"'
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["month", "year", "applications", "revenue", "success_rate", "pending"]
    assert rows[-1] == ["Jun", "2024", "2", "600", "50", "1"]
