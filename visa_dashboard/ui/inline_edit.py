"""
ui/inline_edit.py
-----------------
Inline editing of application rows in the console.

Two layers of state:
  records  — the list last fetched from the store, with optimistic edits
             applied on top as soon as a field is committed
  drafts   — per row, only the fields changed since edit mode was entered;
             sent as one partial update when the row is saved

Reconciliation is always reload-and-replace from the store, never a merge.
At most one field in the whole table is focused for editing at a time.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from visa_dashboard.core.logging import get_logger
from visa_dashboard.models.application import ApplicationStatus
from visa_dashboard.schemas.analytics import TimeWindow
from visa_dashboard.schemas.application import ApplicationRead
from visa_dashboard.schemas.tenant_settings import COLUMN_CHOICES
from visa_dashboard.services import csv_export
from visa_dashboard.services.listing import STATUS_ALL, SortKey, apply_view
from visa_dashboard.ui.client import DashboardClientError

logger = get_logger(__name__)

SENT_LABEL = "✓ Sent"
NOT_SENT_LABEL = "✗ Pending"
NOTIFICATION_LABELS = (SENT_LABEL, NOT_SENT_LABEL)

GENDER_CODES = {"M": "Male", "F": "Female", "O": "Other", "N/A": "Not specified"}
GENDER_LABELS = {name: code for code, name in GENDER_CODES.items()}

NUMERIC_FIELDS = ("fees", "costs")

EDITABLE_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "date_of_birth",
    "gender",
    "passport_no",
    "whatsapp_number",
    "email",
    "destination",
    "visa_type",
    "fees",
    "costs",
    "whatsapp_sent",
    "agent_notes",
)

# The applicant name heads every row, so its fields are editable whatever columns are shown
NAME_FIELDS = ("first_name", "middle_name", "last_name")

DEFAULT_COLUMNS = (
    "gender",
    "date_of_birth",
    "passport_no",
    "whatsapp_number",
    "email",
    "destination",
    "visa_type",
    "fees",
    "costs",
    "whatsapp_sent",
    "agent_notes",
)

# Leading numeric prefix, the way a browser's parseFloat reads "12.5abc"
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(raw: Any) -> float:
    """Best-effort float; anything unparseable becomes 0.0."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        match = _LEADING_NUMBER.match(str(raw or ""))
        value = float(match.group()) if match else 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def coerce_field_value(field: str, raw: Any) -> Any:
    if field in NUMERIC_FIELDS:
        return parse_amount(raw)
    if field == "whatsapp_sent":
        if isinstance(raw, bool):
            return raw
        return raw == SENT_LABEL
    if field == "gender":
        return GENDER_CODES.get(raw, raw)
    return raw


def display_value(field: str, value: Any) -> Any:
    """Inverse of coerce_field_value for table cells."""
    if field == "whatsapp_sent":
        return SENT_LABEL if value else NOT_SENT_LABEL
    if field == "gender":
        return GENDER_LABELS.get(value, value)
    return value


def deletion_prompt(record: ApplicationRead) -> str:
    return (
        f"This will permanently delete the application for "
        f"{record.first_name} {record.last_name} (ID #{record.id}).\n"
        "This action cannot be undone.\n\n"
        "Are you absolutely sure you want to proceed?"
    )


def row_columns(visible_fields: Optional[list[str]]) -> list[str]:
    """The agency's chosen columns, or the defaults. Names that are not columns are dropped."""
    chosen = [name for name in visible_fields or () if name in COLUMN_CHOICES]
    return chosen or list(DEFAULT_COLUMNS)


def edit_fields(columns: list[str]) -> list[str]:
    return list(dict.fromkeys(
        [*NAME_FIELDS, *(name for name in columns if name in EDITABLE_FIELDS)]
    ))


class RecordStore(Protocol):
    def list_applications(self) -> list[ApplicationRead]: ...

    def create_application(self, payload: dict[str, Any]) -> ApplicationRead: ...

    def update_application(self, application_id: int, fields: dict[str, Any]) -> ApplicationRead: ...

    def delete_application(self, application_id: int) -> bool: ...


@dataclass(frozen=True)
class FieldFocus:
    row_id: int
    field: str


class InlineEditController:

    def __init__(
        self,
        store: RecordStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.records: list[ApplicationRead] = []
        self.editing_rows: set[int] = set()
        self.drafts: dict[int, dict[str, Any]] = {}
        self.focus: Optional[FieldFocus] = None
        self.last_error: Optional[DashboardClientError] = None

        # list view
        self.window: Optional[TimeWindow] = TimeWindow.MONTH
        self.query = ""
        self.status = STATUS_ALL
        self.sort_by = SortKey.NEWEST

        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ── Store round trips ────────────────────────────────────────────────────

    def _fail(self, action: str, exc: DashboardClientError) -> None:
        self.last_error = exc
        logger.warning("Store call failed", action=action, error=str(exc))

    def load(self) -> list[ApplicationRead]:
        """Replace the local list with the store's. On failure the old list stays."""
        try:
            records = self.store.list_applications()
        except DashboardClientError as exc:
            self._fail("load", exc)
            raise
        self.records = list(records)
        self.last_error = None
        return self.records

    def create(self, payload: dict[str, Any]) -> ApplicationRead:
        try:
            record = self.store.create_application(payload)
        except DashboardClientError as exc:
            self._fail("create", exc)
            raise
        self.load()
        return record

    def change_status(self, row_id: int, status: ApplicationStatus) -> ApplicationRead:
        """Status dropdown changes are written immediately, not drafted."""
        status = ApplicationStatus(status)
        try:
            record = self.store.update_application(row_id, {"application_status": status.value})
        except DashboardClientError as exc:
            self._fail("change_status", exc)
            raise
        self.load()
        return record

    def delete_row(self, row_id: int, confirm: Callable[[str], bool]) -> bool:
        """Nothing is sent unless confirm() approves the prompt."""
        record = self.get_record(row_id)
        if not confirm(deletion_prompt(record)):
            return False
        try:
            self.store.delete_application(row_id)
        except DashboardClientError as exc:
            self._fail("delete", exc)
            raise
        self.drafts.pop(row_id, None)
        self.editing_rows.discard(row_id)
        if self.focus and self.focus.row_id == row_id:
            self.focus = None
        self.load()
        return True

    # ── Edit mode ────────────────────────────────────────────────────────────

    def get_record(self, row_id: int) -> ApplicationRead:
        for record in self.records:
            if record.id == row_id:
                return record
        raise LookupError(f"Application {row_id} is not loaded")

    def is_editing(self, row_id: int) -> bool:
        return row_id in self.editing_rows

    def is_focused(self, row_id: int, field: str) -> bool:
        return self.focus == FieldFocus(row_id, field)

    def enter_edit(self, row_id: int) -> None:
        self.get_record(row_id)
        self.editing_rows.add(row_id)
        self.focus = None

    def focus_field(self, row_id: int, field: str) -> FieldFocus:
        """Focus one field; whatever was focused before loses focus."""
        if row_id not in self.editing_rows:
            raise ValueError(f"Row {row_id} is not in edit mode")
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' is not editable")
        self.focus = FieldFocus(row_id, field)
        return self.focus

    def commit_field(self, row_id: int, field: str, raw: Any) -> Any:
        """
        Coerce the typed value into the row's draft and show it at once.
        Nothing is written to the store until save_row().
        """
        if row_id not in self.editing_rows:
            raise ValueError(f"Row {row_id} is not in edit mode")
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' is not editable")

        value = coerce_field_value(field, raw)
        self.drafts.setdefault(row_id, {})[field] = value
        self._patch_local(row_id, {field: value})
        self.focus = None
        return value

    def save_row(self, row_id: int) -> Optional[ApplicationRead]:
        """
        Leave edit mode and send the draft as one partial update.

        The draft is dropped whether or not the write succeeds. On failure
        the optimistic values stay on screen until the row is cancelled or
        reloaded.
        """
        draft = self.drafts.pop(row_id, {})
        self.editing_rows.discard(row_id)
        self.focus = None
        if not draft:
            return None

        try:
            record = self.store.update_application(row_id, draft)
        except DashboardClientError as exc:
            self._fail("save", exc)
            raise
        self.load()
        return record

    def cancel_row(self, row_id: int) -> None:
        """Drop the draft and roll back optimistic values by reloading."""
        self.drafts.pop(row_id, None)
        self.editing_rows.discard(row_id)
        self.focus = None
        self.load()

    def _patch_local(self, row_id: int, changes: dict[str, Any]) -> None:
        self.records = [
            record.model_copy(update=changes) if record.id == row_id else record
            for record in self.records
        ]

    # ── View ─────────────────────────────────────────────────────────────────

    def cell_value(self, record: ApplicationRead, field: str) -> Any:
        value = self.drafts.get(record.id, {}).get(field, getattr(record, field))
        return display_value(field, value)

    def visible_records(self) -> list[ApplicationRead]:
        return apply_view(
            self.records,
            window=self.window,
            query=self.query,
            status=self.status,
            sort_by=self.sort_by,
            now=self._clock(),
        )

    def export_csv(self) -> tuple[str, str]:
        """(filename, content) for the rows currently visible."""
        filename = csv_export.export_filename("applications", self.window or "all")
        return filename, csv_export.applications_csv(self.visible_records())
