"""
dependencies.py
---------------
FastAPI dependency injection for authentication.

Flow:
  1. OAuth2PasswordBearer extracts the Bearer token from the Authorization header.
  2. decode_access_token validates and parses the JWT.
  3. get_current_user loads the User, checking the token's sub and
     tenant_id against persisted data.

There is no anonymous fallback: a missing session, or a token without a
tenant, is a 401. Store calls are therefore never scoped to an empty
tenant identity.
"""

from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.config import settings
from visa_dashboard.core.logging import get_logger
from visa_dashboard.core.security import decode_access_token
from visa_dashboard.db.session import get_db
from visa_dashboard.models.user import User
from visa_dashboard.services.analytics import now_in

logger = get_logger(__name__)

# tokenUrl must match the login endpoint path
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Decode the JWT, then load and return the full User from the database.
    Raises 401 if the token is invalid or the user no longer exists.
    """
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        raise _CREDENTIALS_EXCEPTION

    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    if not user_id or not tenant_id:
        logger.warning("JWT without tenant identity rejected")
        raise _CREDENTIALS_EXCEPTION

    # Always re-verify against DB so deleted agents are rejected
    result = await db.execute(
        select(User).where(User.id == user_id, User.tenant_id == tenant_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning("User from valid JWT not found in DB", user_id=user_id)
        raise _CREDENTIALS_EXCEPTION

    return user


def get_now() -> datetime:
    """Reference time for calendar windows, in the configured zone."""
    return now_in(settings.TIMEZONE)
