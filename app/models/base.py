"""Shared model building blocks."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, Uuid


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LifecycleMixin:
    """Public identifier, timestamps and soft-delete flag shared by every entity.

    Rows with ``is_deleted`` set are hidden from ORM queries by the session hook in
    ``app.database``.
    """

    public_id = Column(Uuid, nullable=False, unique=True, default=uuid.uuid4)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    def mark_deleted(self) -> None:
        now = utcnow()
        self.is_deleted = True
        self.deleted_at = now
        self.updated_at = now


class TenantScoped:
    """Capability marker for rows owned by exactly one company.

    Implementers declare their own ``company_id`` column. Only models carrying this
    marker can be used with ``TenantScopedRepository``.
    """

    company_id: Any
