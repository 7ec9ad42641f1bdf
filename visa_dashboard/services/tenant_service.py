"""
services/tenant_service.py
--------------------------
Agency onboarding.

Signing up an agency creates, in one transaction, the tenant row, its
first agent (role admin) and a branding record named after the agency, so
the console always has a header to show.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.logging import get_logger
from visa_dashboard.models.tenant import Tenant
from visa_dashboard.models.tenant_settings import TenantSettings
from visa_dashboard.models.user import User, UserRole
from visa_dashboard.schemas.tenant import AgencySignup
from visa_dashboard.services.user_service import UserService

logger = get_logger(__name__)


class TenantService:

    @staticmethod
    async def onboard_agency(db: AsyncSession, data: AgencySignup) -> tuple[Tenant, User]:
        """
        Raises ValueError if the agency name or the email is already taken.
        """
        tenant = Tenant(name=data.agency_name)
        db.add(tenant)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ValueError(f"Agency '{data.agency_name}' already exists")
        await db.refresh(tenant)

        admin = await UserService.create_user(
            db, data.email, data.password, tenant.id, role=UserRole.admin
        )
        db.add(TenantSettings(tenant_id=tenant.id, agency_name=tenant.name))
        await db.flush()

        logger.info("Agency onboarded", tenant_id=tenant.id, name=tenant.name)
        return tenant, admin

    @staticmethod
    async def get_tenant_by_id(db: AsyncSession, tenant_id: str) -> Tenant | None:
        result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()
