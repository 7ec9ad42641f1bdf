"""
api/routes/tenants.py
---------------------
Agency onboarding.

POST /signup — Public endpoint: creates the agency, its admin agent and
               its branding record, and logs the admin in.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.api.routes.auth import issue_token
from visa_dashboard.db.session import get_db
from visa_dashboard.schemas.tenant import AgencySignup
from visa_dashboard.schemas.user import TokenResponse
from visa_dashboard.services.tenant_service import TenantService

router = APIRouter(tags=["Tenants"])


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Onboard a new agency",
)
async def signup(
    body: AgencySignup,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    try:
        _tenant, admin = await TenantService.onboard_agency(db, body)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return issue_token(admin)
