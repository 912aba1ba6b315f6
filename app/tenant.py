"""Per-request tenant facts.

A ``TenantContext`` is resolved once at the HTTP boundary and passed explicitly to
services and repositories.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.company import MANAGEMENT_ROLES, Company, CompanyMember


@dataclass(frozen=True)
class TenantContext:
    """Company, user and role of the caller. ``company_id == 0`` means unauthenticated."""

    company_id: int
    company_public_id: uuid.UUID | None
    user_id: int
    role: str

    @property
    def is_authenticated(self) -> bool:
        return self.company_id > 0

    @property
    def can_manage(self) -> bool:
        return self.role in MANAGEMENT_ROLES


ANONYMOUS = TenantContext(company_id=0, company_public_id=None, user_id=0, role="")


def resolve_tenant(db: Session, user_id: int | None) -> TenantContext:
    """Build the tenant context for ``user_id`` from its membership row."""
    if not user_id:
        return ANONYMOUS

    row = db.execute(
        select(CompanyMember.company_id, CompanyMember.role, Company.public_id)
        .join(Company, Company.id == CompanyMember.company_id)
        .where(
            CompanyMember.user_id == user_id,
            CompanyMember.is_deleted.is_(False),
            Company.is_deleted.is_(False),
        )
    ).first()
    if row is None:
        return ANONYMOUS

    return TenantContext(
        company_id=row.company_id,
        company_public_id=row.public_id,
        user_id=user_id,
        role=row.role,
    )
