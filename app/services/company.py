"""Company and membership management."""

import logging
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import transaction
from app.errors import (
    AlreadyInCompany,
    CompanyNotFound,
    CrossTenantAccessDenied,
    DuplicateName,
    InvalidRole,
    MemberNotFound,
    PermissionDenied,
    UserNotFound,
)
from app.models.company import Company, CompanyMember, Role
from app.repositories.companies import CompanyMemberRepository, CompanyRepository, MembershipRepository
from app.repositories.users import CompanyUserRepository, UserRepository
from app.tenant import TenantContext

logger = logging.getLogger("saas_base")


class CompanyService:
    """Company CRUD and membership. All tenant-facing calls take the caller's ``TenantContext``."""

    def create_company(self, db: Session, name: str, settings: dict[str, Any] | None = None) -> Company:
        companies = CompanyRepository(db)
        try:
            with transaction(db):
                if companies.name_exists(name):
                    raise DuplicateName()
                company = companies.add(Company(name=name.strip(), settings=settings or {}))
        except IntegrityError:
            raise DuplicateName() from None
        logger.info("Created company %s", company.id)
        return company

    def get_company(self, db: Session, tenant: TenantContext, public_id: uuid.UUID) -> Company | None:
        """Company by public id, visible only to its own members."""
        if not tenant.is_authenticated or public_id != tenant.company_public_id:
            return None
        return CompanyRepository(db).get_with_members(tenant.company_id)

    def get_current_company(self, db: Session, tenant: TenantContext) -> Company | None:
        if not tenant.is_authenticated:
            return None
        return CompanyRepository(db).get_with_members(tenant.company_id)

    def update_company(
        self,
        db: Session,
        tenant: TenantContext,
        name: str,
        settings: dict[str, Any] | None = None,
        public_id: uuid.UUID | None = None,
    ) -> Company:
        """Rename the caller's company and optionally replace its settings. Owner/Admin only."""
        self._require_manager(tenant)
        companies = CompanyRepository(db)
        try:
            with transaction(db):
                company = self._tenant_company(db, tenant, public_id)
                if companies.name_exists(name, exclude_id=company.id):
                    raise DuplicateName()
                company.name = name.strip()
                if settings is not None:
                    company.settings = settings
                companies.update(company)
        except IntegrityError:
            raise DuplicateName() from None
        return company

    def delete_company(self, db: Session, tenant: TenantContext, public_id: uuid.UUID | None = None) -> None:
        """Soft-delete the caller's company. Owner/Admin only."""
        self._require_manager(tenant)
        with transaction(db):
            company = self._tenant_company(db, tenant, public_id)
            CompanyRepository(db).soft_delete(company)
        logger.info("Company %s deleted by user %s", tenant.company_id, tenant.user_id)

    # --- Members ---

    def list_members(self, db: Session, tenant: TenantContext) -> list[CompanyMember]:
        return CompanyMemberRepository(db, tenant).list()

    def invite_member(self, db: Session, tenant: TenantContext, email: str, role: str) -> CompanyMember:
        """Add an existing, company-less user to the caller's company."""
        self._require_manager(tenant)
        self._check_assignable(tenant, role)

        try:
            with transaction(db):
                company = self._tenant_company(db, tenant)
                # Invitees live outside the tenant, so this lookup is global.
                users = UserRepository(db)
                user = users.get_by_email(email)
                if user is None:
                    raise UserNotFound("User not found. Invitation flow for unknown users is not implemented.")
                if MembershipRepository(db).is_user_in_any_company(user.id):
                    raise AlreadyInCompany()

                member = CompanyMemberRepository(db, tenant).add(CompanyMember(user_id=user.id, role=role))
                user.company_id = company.id
                users.update(user)
        except IntegrityError:
            raise AlreadyInCompany() from None

        logger.info("User %s joined company %s as %s", user.id, company.id, role)
        return member

    def update_member_role(self, db: Session, tenant: TenantContext, member_public_id: uuid.UUID, role: str) -> CompanyMember:
        self._require_manager(tenant)
        self._check_assignable(tenant, role)
        members = CompanyMemberRepository(db, tenant)

        with transaction(db):
            member = members.get_by_public_id(member_public_id)
            if member is None:
                raise MemberNotFound()
            if member.role == Role.OWNER.value:
                raise PermissionDenied("The company owner's role cannot be changed.")
            member.role = role
            members.update(member)
        return member

    def remove_member(self, db: Session, tenant: TenantContext, member_public_id: uuid.UUID) -> None:
        """Delete a membership and clear the user's company id with it."""
        self._require_manager(tenant)
        members = CompanyMemberRepository(db, tenant)

        with transaction(db):
            member = members.get_by_public_id(member_public_id)
            if member is None:
                raise MemberNotFound()
            if member.role == Role.OWNER.value:
                raise PermissionDenied("The company owner cannot be removed.")

            company_users = CompanyUserRepository(db, tenant)
            user = company_users.get(member.user_id)
            members.delete(member)
            if user is not None:
                user.company_id = None
                company_users.update(user)

        logger.info("Member %s removed from company %s", member_public_id, tenant.company_id)

    # --- Helpers ---

    @staticmethod
    def _require_manager(tenant: TenantContext) -> None:
        if not tenant.can_manage:
            raise PermissionDenied()

    @staticmethod
    def _check_assignable(tenant: TenantContext, role: str) -> None:
        if role not in {r.value for r in Role}:
            raise InvalidRole(f"Unknown role '{role}'.")
        if role == Role.OWNER.value and tenant.role != Role.OWNER.value:
            raise PermissionDenied("Only the owner can grant the Owner role.")

    @staticmethod
    def _tenant_company(db: Session, tenant: TenantContext, public_id: uuid.UUID | None = None) -> Company:
        if not tenant.is_authenticated:
            raise CompanyNotFound()
        if public_id is not None and public_id != tenant.company_public_id:
            raise CrossTenantAccessDenied()
        company = CompanyRepository(db).get(tenant.company_id)
        if company is None:
            raise CompanyNotFound()
        return company


_company_service: CompanyService | None = None


def get_company_service() -> CompanyService:
    """Get singleton company service instance."""
    global _company_service
    if _company_service is None:
        _company_service = CompanyService()
    return _company_service
