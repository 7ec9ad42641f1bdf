"""
schemas/user.py
---------------
Pydantic models for agent registration, login, and responses.

hashed_password is never included in any response schema.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    """An agent joining an existing agency."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    tenant_id: str = Field(..., description="UUID of the agency to join")


class UserRead(BaseModel):
    id: str
    email: str
    role: str
    tenant_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead
