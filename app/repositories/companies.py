"""Company and membership repositories."""

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.models.company import Company, CompanyMember
from app.repositories.base import Repository, row_exists
from app.repositories.tenant import TenantScopedRepository


class CompanyRepository(Repository[Company]):
    model = Company

    def get_with_members(self, company_id: int) -> Company | None:
        return self.db.scalars(
            select(Company)
            .where(Company.id == company_id)
            .options(selectinload(Company.members).selectinload(CompanyMember.user))
        ).first()

    def name_exists(self, name: str, exclude_id: int | None = None) -> bool:
        """Case-insensitive check across all rows, soft-deleted included (the column is unique)."""
        stmt = select(Company.id).where(func.lower(Company.name) == name.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(Company.id != exclude_id)
        return row_exists(self.db, stmt, include_deleted=True)


class MembershipRepository(Repository[CompanyMember]):
    """Unscoped membership access used by signup, seeding and invites."""

    model = CompanyMember

    def is_user_in_any_company(self, user_id: int) -> bool:
        return row_exists(self.db, select(CompanyMember.id).where(CompanyMember.user_id == user_id), include_deleted=True)


class CompanyMemberRepository(TenantScopedRepository[CompanyMember]):
    """Members of the caller's company."""

    model = CompanyMember

    def list(self) -> list[CompanyMember]:
        return list(self.db.scalars(self._select().options(selectinload(CompanyMember.user)).order_by(CompanyMember.id)))
