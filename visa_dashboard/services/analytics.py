"""
services/analytics.py
---------------------
Aggregation engine for the analytics view.

Pure functions over any sequence of application records: ORM rows and
ApplicationRead models both work, all that is read is application_status,
fees, costs and submitted_at.

Window resolution (relative to "now", in now's timezone):
  Today → start of the calendar day
  Week  → now minus 7×24h (rolling, not calendar aligned)
  Month → first day of the current month
  Year  → first day of the current year

Every division is guarded: an empty record set or a previous value of 0
yields 0 / None, never an exception, NaN or infinity.
"""

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo

from visa_dashboard.models.application import ApplicationStatus
from visa_dashboard.schemas.analytics import (
    MetricComparison,
    MonthlyBucket,
    PeriodSummary,
    StatusSlice,
    TimeWindow,
    WindowReport,
)

_MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

PERIOD_LABELS = {
    TimeWindow.TODAY: "vs Yesterday",
    TimeWindow.WEEK: "vs last week",
    TimeWindow.MONTH: "vs last month",
    TimeWindow.YEAR: "vs last year",
}

STATUS_COLORS = {
    ApplicationStatus.APPROVED: "#10B981",
    ApplicationStatus.PENDING: "#F59E0B",
    ApplicationStatus.REJECTED: "#EF4444",
}

HISTORY_MONTHS = 12

WEEK_SPAN = timedelta(hours=7 * 24)


# ── Helpers ──────────────────────────────────────────────────────────────────

def now_in(tz_name: str = "UTC") -> datetime:
    return datetime.now(ZoneInfo(tz_name))


def elapsed_before(moment: datetime, span: timedelta) -> datetime:
    """moment minus span in absolute time, so a DST change inside span does not stretch it."""
    return (moment.astimezone(timezone.utc) - span).astimezone(moment.tzinfo)


def as_aware(ts: datetime) -> datetime:
    """Naive timestamps (SQLite drops tzinfo) are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def round_half_up(value: float, places: int = 0):
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def _status(record) -> ApplicationStatus:
    return ApplicationStatus(record.application_status)


def profit(record) -> float:
    return record.fees - record.costs


def profit_margin(record) -> Optional[int]:
    """Profit as a whole percentage of fees; None when fees is 0."""
    if not record.fees:
        return None
    return round_half_up((record.fees - record.costs) / record.fees * 100)


def success_rate(approved: int, total: int) -> int:
    if total == 0:
        return 0
    return round_half_up(approved / total * 100)


# ── Windows ──────────────────────────────────────────────────────────────────

def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def window_start(window: TimeWindow, now: datetime) -> datetime:
    window = TimeWindow(window)
    now = as_aware(now)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if window is TimeWindow.TODAY:
        return midnight
    if window is TimeWindow.WEEK:
        return elapsed_before(now, WEEK_SPAN)
    if window is TimeWindow.MONTH:
        return midnight.replace(day=1)
    return midnight.replace(month=1, day=1)


def previous_window(window: TimeWindow, now: datetime) -> tuple[datetime, datetime]:
    """(start, end) of the window right before the current one, end exclusive."""
    window = TimeWindow(window)
    end = window_start(window, now)
    if window is TimeWindow.TODAY:
        start = end - timedelta(days=1)
    elif window is TimeWindow.WEEK:
        start = elapsed_before(end, WEEK_SPAN)
    elif window is TimeWindow.MONTH:
        year, month = _shift_month(end.year, end.month, -1)
        start = end.replace(year=year, month=month)
    else:
        start = end.replace(year=end.year - 1)
    return start, end


def records_between(records: Iterable, start: datetime, end: Optional[datetime] = None) -> list:
    selected = []
    for record in records:
        submitted = as_aware(record.submitted_at)
        if submitted < start:
            continue
        if end is not None and submitted >= end:
            continue
        selected.append(record)
    return selected


def records_in_window(records: Iterable, window: TimeWindow, now: datetime) -> list:
    return records_between(records, window_start(window, now))


# ── Summaries ────────────────────────────────────────────────────────────────

def summarize(records: Sequence) -> PeriodSummary:
    approved = [r for r in records if _status(r) is ApplicationStatus.APPROVED]
    pending = [r for r in records if _status(r) is ApplicationStatus.PENDING]
    rejected = [r for r in records if _status(r) is ApplicationStatus.REJECTED]
    total = len(records)
    return PeriodSummary(
        total_applications=total,
        approved_count=len(approved),
        pending_count=len(pending),
        rejected_count=len(rejected),
        total_revenue=sum(profit(r) for r in approved),
        pending_revenue=sum(profit(r) for r in pending),
        success_rate=success_rate(len(approved), total),
    )


def percent_delta(current: float, previous: float) -> Optional[float]:
    """Percentage change to one decimal, None when previous is 0."""
    if not previous:
        return None
    return round_half_up((current - previous) / previous * 100, 1)


def compare(
    key: str,
    title: str,
    current: float,
    previous: float,
    period: str,
    with_percent: bool = True,
) -> MetricComparison:
    change = current - previous
    return MetricComparison(
        key=key,
        title=title,
        value=current,
        previous=previous,
        change=change,
        change_percent=percent_delta(current, previous) if with_percent else None,
        trend="up" if change >= 0 else "down",
        period=period,
    )


def status_breakdown(summary: PeriodSummary) -> list[StatusSlice]:
    counts = {
        ApplicationStatus.APPROVED: summary.approved_count,
        ApplicationStatus.PENDING: summary.pending_count,
        ApplicationStatus.REJECTED: summary.rejected_count,
    }
    return [
        StatusSlice(name=status.value, value=count, color=STATUS_COLORS[status])
        for status, count in counts.items()
    ]


def window_report(records: Sequence, window: TimeWindow, now: datetime) -> WindowReport:
    start = window_start(window, now)
    prev_start, prev_end = previous_window(window, now)

    current = summarize(records_between(records, start))
    previous = summarize(records_between(records, prev_start, prev_end))
    period = PERIOD_LABELS[window]

    metrics = [
        compare(
            "applications", "Total Applications",
            current.total_applications, previous.total_applications, period,
        ),
        compare(
            "revenue", "Pending Revenue",
            current.pending_revenue, previous.pending_revenue, "Awaiting approval",
        ),
        # the delta of a rate is already in points
        compare(
            "success", "Success Rate",
            current.success_rate, previous.success_rate, period, with_percent=False,
        ),
        compare(
            "total", "Total Profit",
            current.total_revenue, previous.total_revenue, period,
        ),
    ]
    return WindowReport(
        window=window,
        start=start,
        previous_start=prev_start,
        previous_end=prev_end,
        current=current,
        previous=previous,
        metrics=metrics,
        status_breakdown=status_breakdown(current),
    )


def monthly_history(records: Sequence, now: datetime) -> list[MonthlyBucket]:
    """Twelve buckets, oldest first, the last one being now's month."""
    now = as_aware(now)
    by_month: dict[tuple[int, int], list] = {}
    for record in records:
        local = as_aware(record.submitted_at).astimezone(now.tzinfo)
        by_month.setdefault((local.year, local.month), []).append(record)

    buckets = []
    for offset in range(-(HISTORY_MONTHS - 1), 1):
        year, month = _shift_month(now.year, now.month, offset)
        summary = summarize(by_month.get((year, month), []))
        buckets.append(
            MonthlyBucket(
                month=_MONTH_LABELS[month - 1],
                year=year,
                month_number=month,
                applications=summary.total_applications,
                revenue=summary.total_revenue,
                success_rate=summary.success_rate,
                pending=summary.pending_count,
            )
        )
    return buckets
