"""Repository that confines every read and write to the caller's company."""

import logging
from typing import Any, TypeVar

from sqlalchemy import false, inspect
from sqlalchemy.orm import Session

from app.database import Base
from app.errors import CrossTenantAccessDenied
from app.models.base import TenantScoped
from app.repositories.base import Repository
from app.tenant import TenantContext

logger = logging.getLogger("saas_base")

ScopedT = TypeVar("ScopedT", bound=Base)


def _stored_company_id(entity: Any) -> int | None:
    """Company id as loaded from the database, ignoring unflushed reassignment."""
    history = inspect(entity).attrs.company_id.history
    if history.deleted:
        return history.deleted[0]
    return entity.company_id


class TenantScopedRepository(Repository[ScopedT]):
    """Repository for ``TenantScoped`` models.

    Reads only see rows of ``tenant.company_id``; an unauthenticated tenant sees
    nothing. Creates are stamped with the tenant's company. Updates and deletes of
    rows owned by another company raise ``CrossTenantAccessDenied``.
    """

    def __init__(self, db: Session, tenant: TenantContext) -> None:
        if not issubclass(self.model, TenantScoped):
            raise TypeError(f"{self.model.__name__} is not tenant scoped")
        super().__init__(db)
        self.tenant = tenant

    def _select(self) -> Any:
        stmt = super()._select()
        if not self.tenant.is_authenticated:
            return stmt.where(false())
        return stmt.where(self.model.company_id == self.tenant.company_id)

    def _check_owner(self, entity: ScopedT) -> None:
        owner = _stored_company_id(entity)
        if not self.tenant.is_authenticated or owner != self.tenant.company_id:
            logger.warning(
                "Cross-tenant write blocked: %s id=%s company=%s tenant=%s",
                type(entity).__name__,
                entity.id,
                owner,
                self.tenant.company_id,
            )
            raise CrossTenantAccessDenied()

    def add(self, entity: ScopedT) -> ScopedT:
        if not self.tenant.is_authenticated:
            raise CrossTenantAccessDenied()
        entity.company_id = self.tenant.company_id
        return super().add(entity)

    def update(self, entity: ScopedT) -> ScopedT:
        self._check_owner(entity)
        return super().update(entity)

    def soft_delete(self, entity: ScopedT) -> None:
        self._check_owner(entity)
        super().soft_delete(entity)

    def delete(self, entity: ScopedT) -> None:
        """Physically remove a row (join rows only)."""
        self._check_owner(entity)
        self.db.delete(entity)
        self.db.flush()
