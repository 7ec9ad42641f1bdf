"""
api/routes/settings.py
----------------------
Agency branding.

GET /settings  — the current agency's branding (404 until saved)
PUT /settings  — upsert the current agency's branding
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.db.session import get_db
from visa_dashboard.dependencies import get_current_user
from visa_dashboard.models.user import User
from visa_dashboard.schemas.tenant_settings import TenantSettingsRead, TenantSettingsUpdate
from visa_dashboard.services.tenant_settings_service import TenantSettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=TenantSettingsRead, summary="Get agency branding")
async def get_settings(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TenantSettingsRead:
    record = await TenantSettingsService.get_settings(db, current_user.tenant_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No settings saved for this agency",
        )
    return TenantSettingsRead.model_validate(record)


@router.put("", response_model=TenantSettingsRead, summary="Save agency branding")
async def save_settings(
    body: TenantSettingsUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TenantSettingsRead:
    record = await TenantSettingsService.upsert_settings(db, current_user.tenant_id, body)
    return TenantSettingsRead.model_validate(record)
