"""
ui/console.py
-------------
Operator console (Streamlit).

Run with:
    streamlit run visa_dashboard/ui/console.py

Pages: Analytics, All Applications (search / filter / sort, inline edit,
CSV export), New Application, Settings (agency branding). All data goes
through DashboardClient; row editing state lives in InlineEditController
inside st.session_state.
"""

from datetime import date
from typing import Any, Callable

import streamlit as st

from visa_dashboard.core.logging import configure_logging, get_logger
from visa_dashboard.models.application import ApplicationStatus
from visa_dashboard.schemas.analytics import TimeWindow
from visa_dashboard.schemas.tenant_settings import COLUMN_CHOICES
from visa_dashboard.services.listing import STATUS_ALL, SortKey
from visa_dashboard.ui.client import DashboardClient, DashboardClientError
from visa_dashboard.ui.config import get_console_settings
from visa_dashboard.ui.inline_edit import (
    GENDER_CODES,
    NOTIFICATION_LABELS,
    InlineEditController,
    deletion_prompt,
    edit_fields,
    row_columns,
)

logger = get_logger(__name__)
console_settings = get_console_settings()

DESTINATIONS = ["Canada", "Australia", "Germany", "United Kingdom", "United States"]
VISA_TYPES = ["Tourist", "Student", "Work", "Business", "Medical"]
GENDERS = ["Male", "Female", "Other", "Not specified"]
CUSTOM = "Other..."
STATUSES = [s.value for s in ApplicationStatus]

PAGES = ("Analytics", "All Applications", "New Application", "Settings")

st.set_page_config(page_title="Visa Dashboard", layout="wide")


# ── Session state ─────────────────────────────────────────────────────────────

def _init_state() -> None:
    if "client" in st.session_state:
        return
    configure_logging(console_settings.DEBUG)
    client = DashboardClient(console_settings.BACKEND_URL, timeout=console_settings.REQUEST_TIMEOUT)
    st.session_state.client = client
    st.session_state.controller = InlineEditController(client, clock=console_settings.now)
    st.session_state.branding = None
    st.session_state.loaded = False
    st.session_state.pending_delete = None
    st.session_state.flash = None


def _client() -> DashboardClient:
    return st.session_state.client


def _controller() -> InlineEditController:
    return st.session_state.controller


def _flash(kind: str, message: str) -> None:
    st.session_state.flash = (kind, message)


def _show_flash() -> None:
    flash = st.session_state.flash
    if not flash:
        return
    kind, message = flash
    getattr(st, kind)(message)
    st.session_state.flash = None


def _guarded(action: Callable[..., Any], *args: Any, success: str = "") -> Callable[[], None]:
    """Widget callback that reports store failures instead of crashing the page."""
    def callback() -> None:
        try:
            action(*args)
        except DashboardClientError as exc:
            _flash("error", f"Request failed: {exc}")
        else:
            if success:
                _flash("success", success)
    return callback


def _load_branding() -> None:
    try:
        st.session_state.branding = _client().get_settings()
    except DashboardClientError as exc:
        logger.warning("Branding unavailable", error=str(exc))
        st.session_state.branding = None


# ── Authentication ────────────────────────────────────────────────────────────

def render_auth() -> None:
    st.title(console_settings.DEFAULT_AGENCY_NAME)
    login_tab, signup_tab = st.tabs(["Log in", "Register agency"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Log in")
        if submitted:
            try:
                _client().login(email, password)
            except DashboardClientError as exc:
                st.error(f"Login failed: {exc.detail}")
            else:
                _load_branding()
                st.rerun()

    with signup_tab:
        with st.form("signup_form"):
            agency = st.text_input("Agency name")
            email = st.text_input("Admin email")
            password = st.text_input("Password (min 8 characters)", type="password")
            submitted = st.form_submit_button("Register")
        if submitted:
            try:
                _client().signup(agency, email, password)
            except DashboardClientError as exc:
                st.error(f"Registration failed: {exc.detail}")
            else:
                _load_branding()
                st.rerun()


def _logout() -> None:
    _client().logout()
    st.session_state.controller = InlineEditController(_client())
    st.session_state.loaded = False
    st.session_state.pending_delete = None
    st.session_state.branding = None


# ── Sidebar ───────────────────────────────────────────────────────────────────

def render_sidebar() -> tuple[str, TimeWindow]:
    branding = st.session_state.branding
    with st.sidebar:
        if branding and branding.logo_url:
            st.image(branding.logo_url, width=120)
        st.header(branding.agency_name if branding else console_settings.DEFAULT_AGENCY_NAME)
        if _client().user:
            st.caption(_client().user.email)

        page = st.radio("Navigate", PAGES)
        window = TimeWindow(
            st.selectbox(
                "Time period",
                [w.value for w in TimeWindow],
                index=[w.value for w in TimeWindow].index(TimeWindow.MONTH.value),
            )
        )
        st.button("Log out", on_click=_logout)
    return page, window


# ── Analytics ─────────────────────────────────────────────────────────────────

def _metric_value(key: str, value: float) -> str:
    if key == "applications":
        return f"{value:,.0f}"
    if key == "success":
        return f"{value:.0f}%"
    return f"${value:,.2f}"


def render_analytics(window: TimeWindow) -> None:
    st.title("Analytics")
    try:
        report = _client().window_report(window)
        history = _client().monthly_history()
    except DashboardClientError as exc:
        st.error(f"Failed to load data: {exc}")
        st.button("Retry")
        return

    for column, metric in zip(st.columns(len(report.metrics)), report.metrics):
        with column:
            change = _metric_value(metric.key, metric.change)
            if metric.key == "success":
                change = f"{metric.change:+.0f} pts"
            st.metric(
                metric.title,
                _metric_value(metric.key, metric.value),
                delta=f"{change} ({metric.change_percent_label}) {metric.period}",
            )

    chart_col, status_col = st.columns([2, 1])
    with chart_col:
        st.subheader("Application analytics (12 months)")
        data = {
            "month": [f"{b.year}-{b.month_number:02d}" for b in history],
            "applications": [b.applications for b in history],
            "revenue": [b.revenue for b in history],
            "success_rate": [b.success_rate for b in history],
        }
        series = st.multiselect(
            "Series", ["applications", "revenue", "success_rate"],
            default=["applications", "revenue", "success_rate"],
        )
        if series:
            st.line_chart(data, x="month", y=series)
        try:
            filename, content = _client().export_monthly_history(window)
        except DashboardClientError as exc:
            st.warning(f"Export unavailable: {exc}")
        else:
            st.download_button("Export CSV", content, file_name=filename, mime="text/csv")

    with status_col:
        st.subheader("Application status")
        if report.current.total_applications:
            st.bar_chart(
                {
                    "status": [s.name for s in report.status_breakdown],
                    "count": [s.value for s in report.status_breakdown],
                },
                x="status",
                y="count",
            )
        else:
            st.info("No data available")


# ── All applications ──────────────────────────────────────────────────────────

def _field_editor(controller: InlineEditController, record, field: str) -> None:
    value = controller.cell_value(record, field)
    key = f"edit-{record.id}-{field}"

    if not controller.is_focused(record.id, field):
        st.button(
            f"{field}: {value if value not in (None, '') else '—'}",
            key=f"focus-{record.id}-{field}",
            on_click=controller.focus_field,
            args=(record.id, field),
        )
        return

    def commit() -> None:
        controller.commit_field(record.id, field, st.session_state[key])

    if field in ("gender", "whatsapp_sent"):
        options = list(GENDER_CODES) if field == "gender" else list(NOTIFICATION_LABELS)
        if value not in options:
            options.insert(0, value)
        st.selectbox(field, options, index=options.index(value), key=key, on_change=commit)
    else:
        st.text_input(field, value="" if value is None else str(value), key=key, on_change=commit)


def _render_row(controller: InlineEditController, record, columns: list[str]) -> None:
    with st.container(border=True):
        head, status_cell, actions = st.columns([3, 1, 2])
        with head:
            st.markdown(f"**#{record.id} {record.first_name} {record.last_name}**")
            margin = f"{record.profit_margin}%" if record.profit_margin is not None else "—"
            st.caption(
                f"Fees ${record.fees:,.2f} · Costs ${record.costs:,.2f} · "
                f"Profit ${record.profit:,.2f} · Margin {margin}"
            )
        with status_cell:
            current = record.application_status.value
            key = f"status-{record.id}"
            st.selectbox(
                "Status",
                STATUSES,
                index=STATUSES.index(current),
                key=key,
                label_visibility="collapsed",
                on_change=lambda: _guarded(
                    controller.change_status, record.id, st.session_state[key]
                )(),
            )
        with actions:
            if controller.is_editing(record.id):
                save, cancel = st.columns(2)
                save.button(
                    "Save", key=f"save-{record.id}",
                    on_click=_guarded(controller.save_row, record.id, success="Changes saved"),
                )
                cancel.button(
                    "Cancel", key=f"cancel-{record.id}",
                    on_click=_guarded(controller.cancel_row, record.id),
                )
            else:
                edit, delete = st.columns(2)
                edit.button("Edit", key=f"enter-{record.id}", on_click=controller.enter_edit, args=(record.id,))
                delete.button(
                    "Delete", key=f"delete-{record.id}",
                    on_click=lambda: st.session_state.update(pending_delete=record.id),
                )

        if controller.is_editing(record.id):
            for field in edit_fields(columns):
                _field_editor(controller, record, field)
        else:
            cells = st.columns(4)
            for index, field in enumerate(columns):
                cells[index % 4].write(f"{field}: {controller.cell_value(record, field) or '—'}")

        if st.session_state.pending_delete == record.id:
            st.warning(deletion_prompt(record))
            yes, no = st.columns(2)
            yes.button(
                "Yes, delete", key=f"confirm-{record.id}",
                on_click=_guarded(_delete, controller, record.id, success="Application deleted successfully!"),
            )
            no.button(
                "Keep it", key=f"keep-{record.id}",
                on_click=lambda: st.session_state.update(pending_delete=None),
            )


def _delete(controller: InlineEditController, row_id: int) -> None:
    st.session_state.pending_delete = None
    controller.delete_row(row_id, confirm=lambda _prompt: True)


def render_applications(window: TimeWindow) -> None:
    st.title("All Applications")
    controller = _controller()
    controller.window = window

    if not st.session_state.loaded:
        try:
            controller.load()
            st.session_state.loaded = True
        except DashboardClientError as exc:
            st.error(f"Failed to load applications: {exc}")
            st.button("Retry")
            return

    search, status, sort, export = st.columns([3, 1, 1, 1])
    controller.query = search.text_input("Search", placeholder="Name, passport, destination")
    controller.status = status.selectbox("Status", [STATUS_ALL] + STATUSES)
    controller.sort_by = SortKey(sort.selectbox("Sort", [k.value for k in SortKey]))

    rows = controller.visible_records()
    filename, content = controller.export_csv()
    export.download_button(
        "Export CSV", content, file_name=filename, mime="text/csv", disabled=not rows
    )

    branding = st.session_state.branding
    columns = row_columns(branding.visible_fields if branding else None)

    st.caption(f"{len(rows)} of {len(controller.records)} applications")
    for record in rows:
        _render_row(controller, record, columns)


# ── New application ───────────────────────────────────────────────────────────

def _choice_with_custom(label: str, options: list[str], key: str) -> str:
    choice = st.selectbox(label, [""] + options + [CUSTOM], key=f"{key}-choice")
    if choice == CUSTOM:
        return st.text_input(f"Custom {label.lower()}", key=f"{key}-custom")
    return choice


def render_new_application() -> None:
    st.title("New Application")
    # Outside the form so choosing "Other..." can reveal the custom input
    destination = _choice_with_custom("Destination", DESTINATIONS, "destination")
    visa_type = _choice_with_custom("Visa type", VISA_TYPES, "visa_type")

    with st.form("new_application", clear_on_submit=True):
        first, middle, last = st.columns(3)
        first_name = first.text_input("First name")
        middle_name = middle.text_input("Middle name")
        last_name = last.text_input("Last name")

        dob_col, gender_col, passport_col = st.columns(3)
        date_of_birth = dob_col.date_input(
            "Date of birth", value=date(1990, 1, 1), min_value=date(1900, 1, 1)
        )
        gender = gender_col.selectbox("Gender", [""] + GENDERS)
        passport_no = passport_col.text_input("Passport number")

        phone_col, email_col = st.columns(2)
        whatsapp_number = phone_col.text_input("WhatsApp number")
        email = email_col.text_input("Email (optional)")

        fees_col, costs_col = st.columns(2)
        fees = fees_col.number_input("Fees", min_value=0.0, step=10.0)
        costs = costs_col.number_input("Costs", min_value=0.0, step=10.0)

        document_url = st.text_input("Document URL (optional)")
        agent_notes = st.text_area("Agent notes")
        submitted = st.form_submit_button("Create application")

    if submitted:
        payload = {
            "first_name": first_name,
            "middle_name": middle_name,
            "last_name": last_name,
            "date_of_birth": date_of_birth,
            "gender": gender,
            "passport_no": passport_no,
            "whatsapp_number": whatsapp_number,
            "email": email,
            "destination": destination,
            "visa_type": visa_type,
            "fees": fees,
            "costs": costs,
            "document_urls": [document_url] if document_url else [],
            "agent_notes": agent_notes,
        }
        try:
            _controller().create(payload)
        except DashboardClientError as exc:
            st.error(f"Failed to create application. {exc.detail}")
        else:
            st.session_state.loaded = True
            st.success("Application created successfully!")


# ── Settings ──────────────────────────────────────────────────────────────────

def render_settings() -> None:
    st.title("Account Settings")
    branding = st.session_state.branding
    with st.form("branding"):
        agency_name = st.text_input("Agency name", value=branding.agency_name if branding else "")
        logo_url = st.text_input("Logo URL", value=(branding.logo_url or "") if branding else "")
        visible = st.multiselect(
            "Columns shown in All Applications",
            list(COLUMN_CHOICES),
            default=[f for f in branding.visible_fields or [] if f in COLUMN_CHOICES] if branding else [],
            help="Leave empty to show the default columns",
        )
        submitted = st.form_submit_button("Save")
    if submitted:
        try:
            st.session_state.branding = _client().save_settings(
                agency_name, logo_url, visible or None
            )
        except DashboardClientError as exc:
            st.error(f"Failed to save settings: {exc.detail}")
        else:
            st.success("Settings saved")


# ── Entry point ───────────────────────────────────────────────────────────────

def main() -> None:
    _init_state()
    if not _client().token:
        render_auth()
        st.stop()

    page, window = render_sidebar()
    _show_flash()
    if page == "Analytics":
        render_analytics(window)
    elif page == "All Applications":
        render_applications(window)
    elif page == "New Application":
        render_new_application()
    else:
        render_settings()


main()
