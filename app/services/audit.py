"""Audit trail and unhandled-exception log."""

import json
import logging
import traceback
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.audit import AppLog, AuditEvent, AuditEventType
from app.repositories.audit import AppLogRepository, AuditEventRepository

logger = logging.getLogger("saas_base")


@dataclass
class RequestFacts:
    """Request details attached to an application log entry."""

    path: str | None = None
    method: str | None = None
    trace_id: str | None = None
    user_id: int | None = None
    company_id: int | None = None
    status_code: int = 500


class AuditService:
    """Writes audit events and application error logs."""

    def record(
        self,
        db: Session,
        event_type: AuditEventType,
        user_id: int | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict | None = None,
    ) -> AuditEvent:
        """Add an audit event to the caller's unit of work."""
        event = AuditEvent(
            user_id=user_id,
            event_type=event_type.value,
            ip_address=ip_address,
            user_agent=user_agent,
            details=json.dumps(details) if details else None,
        )
        AuditEventRepository(db).add(event)
        logger.info("AUDIT %s user=%s ip=%s", event_type.value, user_id if user_id else "unknown", ip_address or "-")
        return event

    def record_exception(self, session_factory: Callable[[], Session], facts: RequestFacts, exc: BaseException) -> None:
        """Persist an unhandled exception in its own session.

        Never raises: failing to log must not replace the original exception.
        """
        details = None
        cause = exc.__cause__ or exc.__context__
        if cause is not None:
            details = json.dumps(
                {
                    "inner_exception_type": f"{type(cause).__module__}.{type(cause).__qualname__}",
                    "inner_exception_message": str(cause),
                }
            )

        entry = AppLog(
            level="ERROR",
            category="UnhandledException",
            message=str(exc) or type(exc).__name__,
            exception_type=f"{type(exc).__module__}.{type(exc).__qualname__}",
            exception_message=str(exc),
            stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            details=details,
            user_id=facts.user_id or None,
            company_id=facts.company_id or None,
            trace_id=facts.trace_id,
            correlation_id=facts.trace_id,
            request_path=facts.path,
            request_method=facts.method,
            status_code=facts.status_code,
            source=type(exc).__module__,
        )

        db = session_factory()
        try:
            AppLogRepository(db).add(entry)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist application log for %s %s", facts.method, facts.path)
        finally:
            db.close()


_audit_service: AuditService | None = None


def get_audit_service() -> AuditService:
    """Get singleton audit service instance."""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditService()
    return _audit_service
