"""
models/tenant_settings.py
-------------------------
Per-tenant branding record (agency name, logo) used by the console header.

Keyed by tenant_id so an upsert can never produce two rows for an agency.
"""

from typing import Optional

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from visa_dashboard.db.base import Base, TimestampMixin


class TenantSettings(Base, TimestampMixin):
    __tablename__ = "tenant_settings"

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        primary_key=True,
    )
    agency_name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(2048))
    # None → the console shows every column
    visible_fields: Mapped[Optional[list[str]]] = mapped_column(JSON)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="settings")  # noqa: F821

    def __repr__(self) -> str:
        return f"<TenantSettings tenant_id={self.tenant_id} agency_name={self.agency_name}>"
