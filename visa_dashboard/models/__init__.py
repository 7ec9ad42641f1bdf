"""
models/__init__.py
------------------
Re-export all models so table creation (and Alembic, if added) can import
Base and discover every table via a single import:

    from visa_dashboard.models import Base
"""

from visa_dashboard.db.base import Base
from visa_dashboard.models.application import ApplicationStatus, VisaApplication
from visa_dashboard.models.tenant import Tenant
from visa_dashboard.models.tenant_settings import TenantSettings
from visa_dashboard.models.user import User, UserRole

__all__ = [
    "Base",
    "ApplicationStatus",
    "Tenant",
    "TenantSettings",
    "User",
    "UserRole",
    "VisaApplication",
]
