"""
schemas/analytics.py
--------------------
Response models for the analytics view: period summaries, comparison
cards, the status breakdown and the 12-month history.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, computed_field

# Rendered wherever a percentage cannot be computed (previous value of 0)
PLACEHOLDER = "—"


class TimeWindow(str, Enum):
    TODAY = "Today"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


class PeriodSummary(BaseModel):
    total_applications: int = 0
    approved_count: int = 0
    pending_count: int = 0
    rejected_count: int = 0
    total_revenue: float = 0.0  # profit over APPROVED
    pending_revenue: float = 0.0  # profit over PENDING
    success_rate: int = 0


class MetricComparison(BaseModel):
    key: str
    title: str
    value: float
    previous: float
    change: float
    change_percent: Optional[float] = None
    trend: Literal["up", "down"]
    period: str

    @computed_field  # type: ignore[misc]
    @property
    def change_percent_label(self) -> str:
        if self.change_percent is None:
            return PLACEHOLDER
        return f"{self.change_percent:.1f}%"


class StatusSlice(BaseModel):
    name: str
    value: int
    color: str


class WindowReport(BaseModel):
    window: TimeWindow
    start: datetime
    previous_start: datetime
    previous_end: datetime
    current: PeriodSummary
    previous: PeriodSummary
    metrics: list[MetricComparison]
    status_breakdown: list[StatusSlice]


class MonthlyBucket(BaseModel):
    month: str
    year: int
    month_number: int
    applications: int
    revenue: float  # profit over APPROVED
    success_rate: int
    pending: int
