"""
models/application.py
---------------------
Visa application ORM model, one row per applicant case.

profit is deliberately absent: it is always fees - costs and is computed
wherever it is read (schemas, analytics, CSV export).

submitted_at is stamped once by the service on create. last_updated_at is
refreshed by the service on every update.
"""

from datetime import date, datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from visa_dashboard.db.base import Base, utcnow


class ApplicationStatus(str, PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class VisaApplication(Base):
    __tablename__ = "visa_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Person
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    middle_name: Mapped[Optional[str]] = mapped_column(String(120))
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String(32))
    passport_no: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Contact
    whatsapp_number: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320))

    # Case
    destination: Mapped[str] = mapped_column(String(120), nullable=False)
    visa_type: Mapped[str] = mapped_column(String(120), nullable=False)
    application_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ApplicationStatus.PENDING.value, index=True
    )

    # Finance
    fees: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    costs: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Communication
    whatsapp_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Bookkeeping
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    agent_notes: Mapped[Optional[str]] = mapped_column(Text)
    document_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    agent_id: Mapped[str] = mapped_column(String(320), nullable=False)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="applications")  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<VisaApplication id={self.id} tenant_id={self.tenant_id} "
            f"status={self.application_status}>"
        )
