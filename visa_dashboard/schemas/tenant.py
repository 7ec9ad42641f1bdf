"""
schemas/tenant.py
-----------------
Pydantic request/response models for agency (tenant) onboarding.

The signup response is a TokenResponse (schemas/user.py): the new admin
is logged in straight away.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator


class AgencySignup(BaseModel):
    """Creates the agency, its first (admin) agent and its branding record."""
    agency_name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        examples=["Blue Sky Travels"],
        description="Unique agency name",
    )
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("agency_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v
