"""
api/routes/applications.py
--------------------------
Tenant-scoped CRUD over the visa_applications table.

GET    /applications                — list (optional window / q / status / sort)
POST   /applications                — create (status forced to PENDING)
GET    /applications/export         — CSV attachment of the listed view
GET    /applications/{id}           — read one
PATCH  /applications/{id}           — partial update (inline edits, status)
DELETE /applications/{id}           — delete

The tenant is always taken from the authenticated agent, never from the
request. Unknown ids (including ids of other tenants) raise
ApplicationNotFound, which the app turns into a 404.
"""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.db.session import get_db
from visa_dashboard.dependencies import get_current_user, get_now
from visa_dashboard.models.user import User
from visa_dashboard.schemas.analytics import TimeWindow
from visa_dashboard.schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationRead,
    ApplicationUpdate,
)
from visa_dashboard.services import csv_export, listing
from visa_dashboard.services.application_service import ApplicationService

router = APIRouter(prefix="/applications", tags=["Applications"])

_STATUS_PATTERN = r"^(ALL|PENDING|APPROVED|REJECTED)$"


async def _view(
    db: AsyncSession,
    user: User,
    now: datetime,
    window: Optional[TimeWindow],
    q: str,
    status_filter: str,
    sort: listing.SortKey,
) -> list[ApplicationRead]:
    records = await ApplicationService.list_applications(db, user)
    items = [ApplicationRead.model_validate(r) for r in records]
    return listing.apply_view(
        items, window=window, query=q, status=status_filter, sort_by=sort, now=now
    )


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List the agency's applications",
)
async def list_applications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    now: Annotated[datetime, Depends(get_now)],
    window: Optional[TimeWindow] = Query(default=None, description="Today | Week | Month | Year"),
    q: str = Query(default="", max_length=200, description="Search names, passport, destination"),
    status_filter: str = Query(default="ALL", alias="status", pattern=_STATUS_PATTERN),
    sort: listing.SortKey = Query(default=listing.SortKey.NEWEST),
) -> ApplicationListResponse:
    items = await _view(db, current_user, now, window, q, status_filter, sort)
    return ApplicationListResponse(total=len(items), items=items)


@router.post(
    "",
    response_model=ApplicationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an application",
)
async def create_application(
    body: ApplicationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApplicationRead:
    application = await ApplicationService.create_application(db, current_user, body)
    return ApplicationRead.model_validate(application)


@router.get(
    "/export",
    response_class=Response,
    summary="Download the listed applications as CSV",
)
async def export_applications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    now: Annotated[datetime, Depends(get_now)],
    window: Optional[TimeWindow] = Query(default=None),
    q: str = Query(default="", max_length=200),
    status_filter: str = Query(default="ALL", alias="status", pattern=_STATUS_PATTERN),
    sort: listing.SortKey = Query(default=listing.SortKey.NEWEST),
    filename: Optional[str] = Query(default=None, max_length=120, pattern=r"^[\w.\-]+$"),
) -> Response:
    items = await _view(db, current_user, now, window, q, status_filter, sort)
    name = filename or csv_export.export_filename("applications", window)
    return Response(
        content=csv_export.applications_csv(items),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationRead,
    summary="Get one application",
)
async def get_application(
    application_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApplicationRead:
    application = await ApplicationService.get_application(db, current_user, application_id)
    return ApplicationRead.model_validate(application)


@router.patch(
    "/{application_id}",
    response_model=ApplicationRead,
    summary="Update some fields of an application",
)
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApplicationRead:
    application = await ApplicationService.update_application(
        db, current_user, application_id, body
    )
    return ApplicationRead.model_validate(application)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete an application",
)
async def delete_application(
    application_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> Response:
    await ApplicationService.delete_application(db, current_user, application_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
