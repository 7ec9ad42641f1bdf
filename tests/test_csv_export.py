"""Tests for CSV rendering of applications and monthly analytics."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone

from tests.conftest import NOW, make_record
from visa_dashboard.schemas.analytics import TimeWindow
from visa_dashboard.services import analytics, csv_export


def _parse(content: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content)))


def test_header_is_first_line_and_unquoted():
    content = csv_export.applications_csv([])
    assert content == ",".join(csv_export.APPLICATION_COLUMNS) + "\n"


def test_every_data_cell_is_quoted():
    content = csv_export.applications_csv([make_record(7)])
    data_line = content.splitlines()[1]
    assert data_line.startswith('"7","Ahmed",""')
    assert data_line.count('","') == len(csv_export.APPLICATION_COLUMNS) - 1


def test_commas_and_quotes_survive_a_csv_reader():
    record = make_record(1, first_name='Jane "JJ"', last_name="Doe, Jr")
    rows = _parse(csv_export.applications_csv([record]))
    row = dict(zip(rows[0], rows[1]))

    assert row["first_name"] == 'Jane "JJ"'
    assert row["last_name"] == "Doe, Jr"
    assert '"Jane ""JJ"""' in csv_export.applications_csv([record])


def test_application_row_values():
    record = make_record(
        3,
        middle_name=None,
        fees=1000.0,
        costs=250.5,
        application_status="APPROVED",
        submitted_at=datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc),
    )
    rows = _parse(csv_export.applications_csv([record]))
    row = dict(zip(rows[0], rows[1]))

    assert row["middle_name"] == ""
    assert row["fees"] == "1000"
    assert row["costs"] == "250.5"
    assert row["profit"] == "749.5"
    assert row["application_status"] == "APPROVED"
    assert row["date_of_birth"] == "1990-01-01"
    assert row["submitted_at"] == "2024-06-01T09:30:00+00:00"


def test_format_cell():
    assert csv_export.format_cell(None) == ""
    assert csv_export.format_cell(True) == "true"
    assert csv_export.format_cell(False) == "false"
    assert csv_export.format_cell(12.0) == "12"
    assert csv_export.format_cell(0.25) == "0.25"
    assert csv_export.format_cell(TimeWindow.MONTH) == "Month"
    assert csv_export.format_cell(date(2024, 2, 29)) == "2024-02-29"


def test_rows_keep_input_order():
    records = [make_record(3), make_record(1), make_record(2)]
    rows = _parse(csv_export.applications_csv(records))
    assert [row[0] for row in rows[1:]] == ["3", "1", "2"]


def test_monthly_csv():
    record = make_record(1, application_status="APPROVED", fees=1000, costs=400)
    buckets = analytics.monthly_history([record], NOW)
    rows = _parse(csv_export.monthly_csv(buckets))

    assert rows[0] == list(csv_export.MONTHLY_COLUMNS)
    assert len(rows) == 13
    assert rows[-1] == ["Jun", "2024", "1", "600", "100", "0"]
    assert rows[1] == ["Jul", "2023", "0", "0", "0", "0"]


def test_export_filename():
    assert csv_export.export_filename("applications", TimeWindow.MONTH) == "applications_month.csv"
    assert csv_export.export_filename("analytics", "Today") == "analytics_today.csv"
    assert csv_export.export_filename("applications") == "applications.csv"


def test_approved_record_exports_its_profit():
    record = make_record(1, fees=850, costs=320, application_status="APPROVED")
    rows = _parse(csv_export.applications_csv([record, make_record(2)]))
    assert dict(zip(rows[0], rows[1]))["profit"] == "530"
    assert record.profit == 530
    assert len(rows) == 3
