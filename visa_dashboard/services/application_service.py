"""
services/application_service.py
-------------------------------
Record store for visa applications.

Critical security invariant:
  Every query MUST include tenant_id in the WHERE clause. An id that
  belongs to another tenant behaves exactly like an id that does not
  exist.

The store owns the bookkeeping fields: on create it forces PENDING, stamps
submitted_at / last_updated_at and tags the record with the agent's email;
on update it refreshes last_updated_at. Callers can never write id,
tenant_id, agent_id or submitted_at.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.logging import get_logger
from visa_dashboard.db.base import utcnow
from visa_dashboard.models.application import ApplicationStatus, VisaApplication
from visa_dashboard.models.user import User
from visa_dashboard.schemas.application import ApplicationCreate, ApplicationUpdate

logger = get_logger(__name__)


class ApplicationNotFound(LookupError):
    def __init__(self, application_id: int) -> None:
        super().__init__(f"Application {application_id} not found")
        self.application_id = application_id


class ApplicationService:

    @staticmethod
    async def list_applications(db: AsyncSession, user: User) -> list[VisaApplication]:
        """All applications of the user's tenant, newest submission first."""
        result = await db.execute(
            select(VisaApplication)
            .where(VisaApplication.tenant_id == user.tenant_id)
            .order_by(VisaApplication.submitted_at.desc(), VisaApplication.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_application(
        db: AsyncSession, user: User, application_id: int
    ) -> VisaApplication:
        result = await db.execute(
            select(VisaApplication).where(
                VisaApplication.id == application_id,
                VisaApplication.tenant_id == user.tenant_id,
            )
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise ApplicationNotFound(application_id)
        return application

    @staticmethod
    async def create_application(
        db: AsyncSession, user: User, data: ApplicationCreate
    ) -> VisaApplication:
        now = utcnow()
        application = VisaApplication(
            **data.model_dump(),
            application_status=ApplicationStatus.PENDING.value,
            tenant_id=user.tenant_id,
            agent_id=user.email,
            submitted_at=now,
            last_updated_at=now,
        )
        db.add(application)
        await db.flush()
        await db.refresh(application)
        logger.info(
            "Application created",
            application_id=application.id,
            tenant_id=user.tenant_id,
            agent_id=user.email,
        )
        return application

    @staticmethod
    async def update_application(
        db: AsyncSession, user: User, application_id: int, data: ApplicationUpdate
    ) -> VisaApplication:
        """
        Apply a partial update. Only the fields present in the request are
        written; an empty body leaves the record (and its timestamp) alone.
        """
        application = await ApplicationService.get_application(db, user, application_id)
        changes = data.changes()
        if not changes:
            return application

        for field, value in changes.items():
            setattr(application, field, value)
        application.last_updated_at = utcnow()

        await db.flush()
        await db.refresh(application)
        logger.info(
            "Application updated",
            application_id=application.id,
            tenant_id=user.tenant_id,
            fields=sorted(changes),
        )
        return application

    @staticmethod
    async def delete_application(db: AsyncSession, user: User, application_id: int) -> None:
        application = await ApplicationService.get_application(db, user, application_id)
        await db.delete(application)
        await db.flush()
        logger.info(
            "Application deleted",
            application_id=application_id,
            tenant_id=user.tenant_id,
        )
