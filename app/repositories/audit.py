"""Audit event and application log repositories."""

from sqlalchemy import select

from app.models.audit import AppLog, AuditEvent
from app.repositories.base import Repository


class AuditEventRepository(Repository[AuditEvent]):
    model = AuditEvent

    def list_for_user(self, user_id: int) -> list[AuditEvent]:
        return list(
            self.db.scalars(
                select(AuditEvent).where(AuditEvent.user_id == user_id).order_by(AuditEvent.timestamp.desc(), AuditEvent.id.desc())
            )
        )


class AppLogRepository(Repository[AppLog]):
    model = AppLog
