"""Audit event and application log models."""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from app.database import Base
from app.models.base import utcnow


class AuditEventType(str, enum.Enum):
    SIGNUP = "signup"
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    RESET_PASSWORD = "reset_password"


class AuditEvent(Base):
    """Append-only record of a security-relevant action."""

    __tablename__ = "audit_event"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True)  # NULL for unknown actors
    event_type = Column(String(64), nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    details = Column(Text, nullable=True)


class AppLog(Base):
    """Unhandled request failure captured by the exception logging middleware."""

    __tablename__ = "app_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    level = Column(String(16), nullable=False, default="ERROR", index=True)
    category = Column(String(128), nullable=True)
    message = Column(Text, nullable=False)
    exception_type = Column(String(256), nullable=True)
    exception_message = Column(Text, nullable=True)
    stack_trace = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("company.id"), nullable=True, index=True)
    trace_id = Column(String(64), nullable=True)
    correlation_id = Column(String(64), nullable=True, index=True)
    request_path = Column(String(1024), nullable=True)
    request_method = Column(String(16), nullable=True)
    status_code = Column(Integer, nullable=True)
    source = Column(String(256), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
