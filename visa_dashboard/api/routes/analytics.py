"""
api/routes/analytics.py
-----------------------
Analytics over the agency's applications.

GET /analytics                 — window summary, comparison cards, status split
GET /analytics/monthly         — 12 monthly buckets ending this month
GET /analytics/monthly/export  — the same buckets as a CSV attachment
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.db.session import get_db
from visa_dashboard.dependencies import get_current_user, get_now
from visa_dashboard.models.user import User
from visa_dashboard.schemas.analytics import MonthlyBucket, TimeWindow, WindowReport
from visa_dashboard.services import analytics, csv_export
from visa_dashboard.services.application_service import ApplicationService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "",
    response_model=WindowReport,
    summary="Summary of the selected window compared with the previous one",
)
async def window_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    now: Annotated[datetime, Depends(get_now)],
    window: TimeWindow = Query(default=TimeWindow.MONTH),
) -> WindowReport:
    records = await ApplicationService.list_applications(db, current_user)
    return analytics.window_report(records, window, now)


@router.get(
    "/monthly",
    response_model=list[MonthlyBucket],
    summary="Twelve-month history",
)
async def monthly_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    now: Annotated[datetime, Depends(get_now)],
) -> list[MonthlyBucket]:
    records = await ApplicationService.list_applications(db, current_user)
    return analytics.monthly_history(records, now)


@router.get(
    "/monthly/export",
    response_class=Response,
    summary="Download the twelve-month history as CSV",
)
async def export_monthly_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    now: Annotated[datetime, Depends(get_now)],
    window: TimeWindow = Query(default=TimeWindow.MONTH),
) -> Response:
    records = await ApplicationService.list_applications(db, current_user)
    buckets = analytics.monthly_history(records, now)
    name = csv_export.export_filename("analytics", window)
    return Response(
        content=csv_export.monthly_csv(buckets),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )
