"""
services/csv_export.py
----------------------
CSV rendering for the applications table and the monthly analytics.

Every data cell is quoted and embedded quotes are doubled, so names such
as `Doe, Jr` survive a round trip through any CSV reader. None renders as
an empty cell; integral floats render without a trailing ".0".
"""

import csv
import io
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from visa_dashboard.services.analytics import profit

APPLICATION_COLUMNS = (
    "id",
    "first_name",
    "middle_name",
    "last_name",
    "gender",
    "date_of_birth",
    "passport_no",
    "whatsapp_number",
    "email",
    "destination",
    "visa_type",
    "fees",
    "costs",
    "profit",
    "application_status",
    "agent_id",
    "submitted_at",
    "last_updated_at",
)

MONTHLY_COLUMNS = (
    "month",
    "year",
    "applications",
    "revenue",
    "success_rate",
    "pending",
)


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def application_row(record) -> dict[str, Any]:
    row = {column: getattr(record, column, None) for column in APPLICATION_COLUMNS}
    row["profit"] = profit(record)
    return row


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Header line followed by one fully quoted line per row."""
    buffer = io.StringIO()
    buffer.write(",".join(columns) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([format_cell(row.get(column)) for column in columns])
    return buffer.getvalue()


def applications_csv(records: Iterable) -> str:
    return to_csv((application_row(r) for r in records), APPLICATION_COLUMNS)


def monthly_csv(buckets: Iterable) -> str:
    return to_csv((bucket.model_dump() for bucket in buckets), MONTHLY_COLUMNS)


def export_filename(prefix: str, window: Optional[str] = None) -> str:
    """applications_month.csv style names; falls back to <prefix>.csv."""
    if window:
        window = window.value if isinstance(window, Enum) else window
        return f"{prefix}_{window.lower()}.csv"
    return f"{prefix}.csv"
