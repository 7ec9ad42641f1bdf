"""
services/listing.py
-------------------
Search, status filter and sort over an in-memory list of applications.

Everything here is pure and recomputed from the source list on every
call; no derived index is kept anywhere.
"""

import locale
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Sequence

from visa_dashboard.models.application import ApplicationStatus
from visa_dashboard.schemas.analytics import TimeWindow
from visa_dashboard.services.analytics import as_aware, records_in_window

STATUS_ALL = "ALL"
SEARCH_FIELDS = ("first_name", "last_name", "passport_no", "destination")


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"
    STATUS = "status"


def matches_query(record, query: str) -> bool:
    """Case-insensitive substring match against any searchable field."""
    needle = (query or "").strip().casefold()
    if not needle:
        return True
    return any(needle in (getattr(record, field) or "").casefold() for field in SEARCH_FIELDS)


def matches_status(record, status: Optional[str]) -> bool:
    if not status or status == STATUS_ALL:
        return True
    return ApplicationStatus(record.application_status) is ApplicationStatus(status)


def filter_records(records: Iterable, query: str = "", status: Optional[str] = STATUS_ALL) -> list:
    return [r for r in records if matches_query(r, query) and matches_status(r, status)]


def _name_key(record) -> tuple[str, str]:
    return (
        locale.strxfrm((record.last_name or "").casefold()),
        locale.strxfrm((record.first_name or "").casefold()),
    )


def sort_records(records: Iterable, sort_by: SortKey = SortKey.NEWEST) -> list:
    sort_by = SortKey(sort_by)
    if sort_by is SortKey.NEWEST:
        return sorted(records, key=lambda r: as_aware(r.submitted_at), reverse=True)
    if sort_by is SortKey.OLDEST:
        return sorted(records, key=lambda r: as_aware(r.submitted_at))
    if sort_by is SortKey.NAME:
        return sorted(records, key=_name_key)
    return sorted(records, key=lambda r: ApplicationStatus(r.application_status).value)


def apply_view(
    records: Sequence,
    *,
    window: Optional[TimeWindow] = None,
    query: str = "",
    status: Optional[str] = STATUS_ALL,
    sort_by: SortKey = SortKey.NEWEST,
    now: Optional[datetime] = None,
) -> list:
    """Time window first (when given), then search, status and sort."""
    if window is not None:
        if now is None:
            raise ValueError("now is required when a window is given")
        records = records_in_window(records, window, now)
    return sort_records(filter_records(records, query, status), sort_by)
