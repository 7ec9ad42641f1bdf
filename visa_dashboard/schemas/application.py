"""
schemas/application.py
----------------------
Pydantic request/response models for visa applications.

Naming convention:
  ApplicationCreate  → inbound body for POST /applications
  ApplicationUpdate  → inbound partial body for PATCH /applications/{id}
  ApplicationRead    → outbound body (profit / profit_margin are computed,
                       never stored)

The create body carries no status, tenant, agent or timestamps: the store
forces PENDING and stamps the rest from the authenticated session.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from visa_dashboard.models.application import ApplicationStatus
from visa_dashboard.services import analytics

# Columns that are NOT NULL in the table; a PATCH may omit them but never null them
_REQUIRED_ON_UPDATE = (
    "first_name",
    "last_name",
    "date_of_birth",
    "passport_no",
    "whatsapp_number",
    "destination",
    "visa_type",
    "application_status",
    "fees",
    "costs",
    "whatsapp_sent",
    "document_urls",
)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class ApplicationCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=120, examples=["Ahmed"])
    middle_name: Optional[str] = Field(default=None, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120, examples=["Khan"])
    date_of_birth: date
    gender: Optional[str] = Field(default=None, max_length=32)
    passport_no: str = Field(..., min_length=1, max_length=64)
    whatsapp_number: str = Field(..., min_length=1, max_length=32)
    email: Optional[EmailStr] = None
    destination: str = Field(..., min_length=1, max_length=120, examples=["Dubai"])
    visa_type: str = Field(..., min_length=1, max_length=120, examples=["Tourist"])
    fees: float = 0.0
    costs: float = 0.0
    whatsapp_sent: bool = False
    document_urls: list[str] = Field(default_factory=list)
    agent_notes: Optional[str] = None

    @field_validator("middle_name", "gender", "email", "agent_notes", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        return _blank_to_none(v)


class ApplicationUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    middle_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=32)
    passport_no: Optional[str] = Field(default=None, min_length=1, max_length=64)
    whatsapp_number: Optional[str] = Field(default=None, min_length=1, max_length=32)
    email: Optional[EmailStr] = None
    destination: Optional[str] = Field(default=None, min_length=1, max_length=120)
    visa_type: Optional[str] = Field(default=None, min_length=1, max_length=120)
    application_status: Optional[ApplicationStatus] = None
    fees: Optional[float] = None
    costs: Optional[float] = None
    whatsapp_sent: Optional[bool] = None
    document_urls: Optional[list[str]] = None
    agent_notes: Optional[str] = None

    @field_validator("middle_name", "gender", "email", "agent_notes", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        return _blank_to_none(v)

    @field_validator(*_REQUIRED_ON_UPDATE)
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v

    def changes(self) -> dict:
        """Only the fields the caller actually sent."""
        data = self.model_dump(exclude_unset=True)
        if "application_status" in data:
            data["application_status"] = ApplicationStatus(data["application_status"]).value
        return data


class ApplicationRead(BaseModel):
    id: int
    tenant_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: date
    gender: Optional[str] = None
    passport_no: str
    whatsapp_number: str
    email: Optional[str] = None
    destination: str
    visa_type: str
    application_status: ApplicationStatus
    fees: float
    costs: float
    whatsapp_sent: bool = False
    submitted_at: datetime
    last_updated_at: datetime
    agent_notes: Optional[str] = None
    document_urls: list[str] = Field(default_factory=list)
    agent_id: str

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[misc]
    @property
    def profit(self) -> float:
        return self.fees - self.costs

    @computed_field  # type: ignore[misc]
    @property
    def profit_margin(self) -> Optional[int]:
        return analytics.profit_margin(self)


class ApplicationListResponse(BaseModel):
    total: int
    items: list[ApplicationRead]
