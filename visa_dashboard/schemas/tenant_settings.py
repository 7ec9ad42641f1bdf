"""
schemas/tenant_settings.py
--------------------------
Pydantic models for the per-tenant branding record.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from visa_dashboard.schemas.application import ApplicationRead

# Columns the console can show for an application row
COLUMN_CHOICES = tuple(
    name
    for name in (*ApplicationRead.model_fields, *ApplicationRead.model_computed_fields)
    if name != "tenant_id"
)


class TenantSettingsUpdate(BaseModel):
    agency_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        examples=["Blue Sky Travels"],
    )
    logo_url: Optional[str] = Field(default=None, max_length=2048)
    visible_fields: Optional[list[str]] = None

    @field_validator("agency_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("logo_url")
    @classmethod
    def blank_logo_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("visible_fields")
    @classmethod
    def known_columns(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if not v:
            return None
        unknown = [name for name in v if name not in COLUMN_CHOICES]
        if unknown:
            raise ValueError(f"Unknown columns: {', '.join(unknown)}")
        return list(dict.fromkeys(v))


class TenantSettingsRead(BaseModel):
    tenant_id: str
    agency_name: str
    logo_url: Optional[str] = None
    visible_fields: Optional[list[str]] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
