"""SQLAlchemy models. Importing this package registers every table with ``Base.metadata``."""

from app.models.audit import AppLog, AuditEvent, AuditEventType
from app.models.company import MANAGEMENT_ROLES, Company, CompanyMember, Role
from app.models.token import PasswordResetToken, RefreshToken
from app.models.user import User, UserCredentials

__all__ = [
    "AppLog",
    "AuditEvent",
    "AuditEventType",
    "Company",
    "CompanyMember",
    "MANAGEMENT_ROLES",
    "PasswordResetToken",
    "RefreshToken",
    "Role",
    "User",
    "UserCredentials",
]
