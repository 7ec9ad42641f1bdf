"""
services/tenant_settings_service.py
-----------------------------------
Per-tenant branding: one record per tenant, written by upsert, never
deleted.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.logging import get_logger
from visa_dashboard.models.tenant_settings import TenantSettings
from visa_dashboard.schemas.tenant_settings import TenantSettingsUpdate

logger = get_logger(__name__)


class TenantSettingsService:

    @staticmethod
    async def get_settings(db: AsyncSession, tenant_id: str) -> TenantSettings | None:
        result = await db.execute(
            select(TenantSettings).where(TenantSettings.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_settings(
        db: AsyncSession, tenant_id: str, data: TenantSettingsUpdate
    ) -> TenantSettings:
        record = await TenantSettingsService.get_settings(db, tenant_id)
        if record is None:
            record = TenantSettings(tenant_id=tenant_id)
            db.add(record)

        record.agency_name = data.agency_name
        record.logo_url = data.logo_url
        record.visible_fields = data.visible_fields

        await db.flush()
        await db.refresh(record)
        logger.info("Tenant settings saved", tenant_id=tenant_id)
        return record
