"""
models/tenant.py
----------------
Tenant (travel agency) ORM model.

Each tenant is an isolated agency account. All visa applications and the
branding settings are scoped by tenant_id at the query level; always
include tenant_id in WHERE clauses.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from visa_dashboard.db.base import Base, TimestampMixin, generate_uuid


class Tenant(Base, TimestampMixin):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Relationships
    users: Mapped[list["User"]] = relationship(  # noqa: F821
        "User", back_populates="tenant", cascade="all, delete-orphan"
    )
    applications: Mapped[list["VisaApplication"]] = relationship(  # noqa: F821
        "VisaApplication", back_populates="tenant", cascade="all, delete-orphan"
    )
    settings: Mapped["TenantSettings | None"] = relationship(  # noqa: F821
        "TenantSettings", back_populates="tenant", cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name}>"
