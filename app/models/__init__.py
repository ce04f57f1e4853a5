"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table; no migration scripts needed for fresh installs.
"""
from app.models.user import User, UserRole
from app.models.pending_registration import PendingRegistration
from app.models.audit_log import AuditLog
from app.models.app_setting import AppSetting

__all__ = [
    "User",
    "UserRole",
    "PendingRegistration",
    "AuditLog",
    "AppSetting",
]
