"""
api/routes/auth.py
------------------
Agent identity endpoints.

POST /register  — An agent joins an existing agency.
POST /login     — Exchange credentials for a JWT access token (OAuth2 form).
GET  /me        — Return the authenticated agent's profile.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from visa_dashboard.core.config import settings
from visa_dashboard.core.security import create_access_token
from visa_dashboard.db.session import get_db
from visa_dashboard.dependencies import get_current_user
from visa_dashboard.models.user import User
from visa_dashboard.schemas.user import TokenResponse, UserRead, UserRegister
from visa_dashboard.services.tenant_service import TenantService
from visa_dashboard.services.user_service import UserService

router = APIRouter(tags=["Authentication"])


def issue_token(user: User) -> TokenResponse:
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        subject=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        role=user.role,
        expires_delta=expires,
    )
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=int(expires.total_seconds()),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new agent in an existing agency",
)
async def register(
    body: UserRegister,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserRead:
    tenant = await TenantService.get_tenant_by_id(db, body.tenant_id)
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant '{body.tenant_id}' not found",
        )
    try:
        user = await UserService.register_user(db, body)
        return UserRead.model_validate(user)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and receive a JWT access token",
)
async def login(
    # OAuth2 uses "username"; it holds the agent's email
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    user = await UserService.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return issue_token(user)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get the currently authenticated agent",
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserRead:
    return UserRead.model_validate(current_user)
