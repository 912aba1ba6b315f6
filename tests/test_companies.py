"""Tests for company and membership management."""

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

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
from app.models.user import User
from app.services.auth import AuthService
from app.services.company import CompanyService
from app.tenant import ANONYMOUS, resolve_tenant


@pytest.fixture(name="service")
def service_fixture() -> CompanyService:
    return CompanyService()


@pytest.fixture(name="owner")
def owner_fixture(db_session: Session, auth_service: AuthService):
    user = auth_service.register(db_session, "owner@example.com", "password123", "Owner")
    return user, resolve_tenant(db_session, user.id)


def _loose_user(db: Session, email: str) -> User:
    """A user that belongs to no company."""
    user = User(email=email, name=email.split("@")[0], is_active=True)
    db.add(user)
    db.commit()
    return user


class TestCompanyCrud:
    def test_create_company(self, db_session: Session, service: CompanyService):
        company = service.create_company(db_session, "  Acme  ", {"plan": "pro"})
        assert company.name == "Acme"
        assert company.settings == {"plan": "pro"}
        assert company.public_id is not None

    def test_create_duplicate_name_case_insensitive(self, db_session: Session, service: CompanyService):
        service.create_company(db_session, "Acme", None)
        with pytest.raises(DuplicateName):
            service.create_company(db_session, "ACME", None)

    def test_get_company_only_for_own_tenant(self, db_session: Session, service: CompanyService, owner, auth_service):
        _, tenant = owner
        other = auth_service.register(db_session, "other@example.com", "password123", "Other")
        other_company = db_session.get(Company, other.company_id)

        own = service.get_company(db_session, tenant, tenant.company_public_id)
        assert own.id == tenant.company_id
        assert [m.role for m in own.members] == [Role.OWNER.value]
        assert service.get_company(db_session, tenant, other_company.public_id) is None
        assert service.get_company(db_session, ANONYMOUS, other_company.public_id) is None

    def test_update_company(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        company = service.update_company(db_session, tenant, "Renamed", {"theme": "dark"})
        assert company.name == "Renamed"
        assert company.settings == {"theme": "dark"}
        assert company.updated_at is not None

    def test_update_keeps_settings_when_omitted(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        service.update_company(db_session, tenant, "First", {"a": 1})
        company = service.update_company(db_session, tenant, "Second")
        assert company.settings == {"a": 1}

    def test_rename_to_taken_name_rejected(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        service.create_company(db_session, "Taken", None)
        with pytest.raises(DuplicateName):
            service.update_company(db_session, tenant, "taken")

    def test_update_other_company_denied(self, db_session: Session, service: CompanyService, owner, auth_service):
        _, tenant = owner
        other = auth_service.register(db_session, "other@example.com", "password123", "Other")
        other_company = db_session.get(Company, other.company_id)

        with pytest.raises(CrossTenantAccessDenied):
            service.update_company(db_session, tenant, "Stolen", public_id=other_company.public_id)
        with pytest.raises(CrossTenantAccessDenied):
            service.delete_company(db_session, tenant, public_id=other_company.public_id)
        assert db_session.get(Company, other_company.id).name == "Other's Company"

    def test_delete_is_soft(self, db_session: Session, service: CompanyService, owner):
        user, tenant = owner
        service.delete_company(db_session, tenant, public_id=tenant.company_public_id)

        row = db_session.scalars(
            select(Company).where(Company.id == tenant.company_id).execution_options(include_deleted=True)
        ).one()
        assert row.is_deleted
        assert service.get_current_company(db_session, resolve_tenant(db_session, user.id)) is None

    def test_anonymous_cannot_manage(self, db_session: Session, service: CompanyService):
        with pytest.raises(PermissionDenied):
            service.update_company(db_session, ANONYMOUS, "Nope")


class TestMembership:
    def test_invite_existing_loose_user(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        invitee = _loose_user(db_session, "invitee@example.com")

        member = service.invite_member(db_session, tenant, "Invitee@Example.com", Role.MEMBER.value)

        assert member.company_id == tenant.company_id
        assert member.role == Role.MEMBER.value
        db_session.refresh(invitee)
        assert invitee.company_id == tenant.company_id
        assert resolve_tenant(db_session, invitee.id).company_id == tenant.company_id

    def test_invite_unknown_user(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        with pytest.raises(UserNotFound):
            service.invite_member(db_session, tenant, "ghost@example.com", Role.MEMBER.value)

    def test_invite_user_already_in_company(self, db_session: Session, service: CompanyService, owner, auth_service):
        _, tenant = owner
        auth_service.register(db_session, "taken@example.com", "password123")
        with pytest.raises(AlreadyInCompany):
            service.invite_member(db_session, tenant, "taken@example.com", Role.MEMBER.value)

    def test_member_cannot_invite(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        plain = _loose_user(db_session, "plain@example.com")
        service.invite_member(db_session, tenant, plain.email, Role.MEMBER.value)
        _loose_user(db_session, "next@example.com")

        with pytest.raises(PermissionDenied):
            service.invite_member(db_session, resolve_tenant(db_session, plain.id), "next@example.com", Role.MEMBER.value)

    def test_admin_cannot_grant_owner(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        admin = _loose_user(db_session, "admin@example.com")
        service.invite_member(db_session, tenant, admin.email, Role.ADMIN.value)
        _loose_user(db_session, "next@example.com")
        admin_tenant = resolve_tenant(db_session, admin.id)

        assert admin_tenant.can_manage
        with pytest.raises(PermissionDenied):
            service.invite_member(db_session, admin_tenant, "next@example.com", Role.OWNER.value)
        member = service.invite_member(db_session, admin_tenant, "next@example.com", Role.MEMBER.value)
        assert member.company_id == tenant.company_id

    def test_unknown_role_rejected(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        _loose_user(db_session, "x@example.com")
        with pytest.raises(InvalidRole):
            service.invite_member(db_session, tenant, "x@example.com", "Superuser")

    def test_update_member_role(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        _loose_user(db_session, "m@example.com")
        member = service.invite_member(db_session, tenant, "m@example.com", Role.MEMBER.value)

        updated = service.update_member_role(db_session, tenant, member.public_id, Role.ADMIN.value)
        assert updated.role == Role.ADMIN.value

    def test_owner_role_is_fixed(self, db_session: Session, service: CompanyService, owner):
        user, tenant = owner
        owner_member = db_session.scalars(select(CompanyMember).where(CompanyMember.user_id == user.id)).one()
        with pytest.raises(PermissionDenied):
            service.update_member_role(db_session, tenant, owner_member.public_id, Role.MEMBER.value)
        with pytest.raises(PermissionDenied):
            service.remove_member(db_session, tenant, owner_member.public_id)

    def test_member_of_other_company_not_found(self, db_session: Session, service: CompanyService, owner, auth_service):
        _, tenant = owner
        other = auth_service.register(db_session, "other@example.com", "password123")
        foreign = db_session.scalars(select(CompanyMember).where(CompanyMember.user_id == other.id)).one()

        with pytest.raises(MemberNotFound):
            service.update_member_role(db_session, tenant, foreign.public_id, Role.ADMIN.value)
        with pytest.raises(MemberNotFound):
            service.remove_member(db_session, tenant, foreign.public_id)
        with pytest.raises(MemberNotFound):
            service.remove_member(db_session, tenant, uuid.uuid4())

    def test_remove_member_clears_user_company(self, db_session: Session, service: CompanyService, owner):
        _, tenant = owner
        leaver = _loose_user(db_session, "leaver@example.com")
        member = service.invite_member(db_session, tenant, leaver.email, Role.MEMBER.value)

        service.remove_member(db_session, tenant, member.public_id)

        db_session.refresh(leaver)
        assert leaver.company_id is None
        assert resolve_tenant(db_session, leaver.id) is ANONYMOUS
        assert [m.user_id for m in service.list_members(db_session, tenant)] == [tenant.user_id]

        # Removed users can be invited again.
        again = service.invite_member(db_session, tenant, leaver.email, Role.ADMIN.value)
        assert again.role == Role.ADMIN.value

    def test_anonymous_tenant_has_no_company(self, db_session: Session, service: CompanyService):
        _loose_user(db_session, "x@example.com")
        assert service.get_current_company(db_session, ANONYMOUS) is None
        assert service.list_members(db_session, ANONYMOUS) == []
        with pytest.raises(CompanyNotFound):
            service._tenant_company(db_session, ANONYMOUS)
