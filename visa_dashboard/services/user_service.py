"""
services/user_service.py
------------------------
Agent registration and authentication.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.logging import get_logger
from visa_dashboard.core.security import hash_password, verify_password
from visa_dashboard.models.user import User, UserRole
from visa_dashboard.schemas.user import UserRegister

logger = get_logger(__name__)


class UserService:

    @staticmethod
    async def create_user(
        db: AsyncSession,
        email: str,
        password: str,
        tenant_id: str,
        role: UserRole = UserRole.user,
    ) -> User:
        """
        Persist a new agent in the given tenant.
        Raises ValueError on duplicate email.
        """
        user = User(
            email=email.lower(),
            hashed_password=hash_password(password),
            role=role.value,
            tenant_id=tenant_id,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ValueError(f"Email '{email}' is already registered")
        await db.refresh(user)
        logger.info("Agent registered", user_id=user.id, tenant_id=tenant_id, role=user.role)
        return user

    @staticmethod
    async def register_user(db: AsyncSession, data: UserRegister) -> User:
        return await UserService.create_user(db, data.email, data.password, data.tenant_id)

    @staticmethod
    async def authenticate(
        db: AsyncSession, email: str, password: str
    ) -> User | None:
        """
        Verify credentials and return the User if valid, else None.
        Email lookup is case-insensitive.
        """
        result = await db.execute(
            select(User).where(User.email == email.lower())
        )
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user
