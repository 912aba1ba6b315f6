"""Company and membership API endpoints."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_tenant
from app.models.company import Company, CompanyMember
from app.rate_limit import limiter
from app.schemas.company import (
    CompanyCreateRequest,
    CompanyDetailResponse,
    CompanyResponse,
    CompanyUpdateRequest,
    InviteMemberRequest,
    MemberResponse,
    UpdateMemberRoleRequest,
)
from app.services.company import get_company_service
from app.tenant import TenantContext

router = APIRouter(prefix="/api/v1/companies", tags=["Companies"])


def _member_response(member: CompanyMember) -> MemberResponse:
    return MemberResponse(
        id=member.public_id,
        user_id=member.user.public_id,
        email=member.user.email,
        name=member.user.name,
        avatar_url=member.user.avatar_url,
        role=member.role,
        created_at=member.created_at,
    )


def _company_detail(company: Company) -> CompanyDetailResponse:
    return CompanyDetailResponse(
        public_id=company.public_id,
        name=company.name,
        settings=company.settings,
        created_at=company.created_at,
        updated_at=company.updated_at,
        members=[_member_response(m) for m in company.members if m.user is not None],
    )


@router.post("/", response_model=CompanyResponse, status_code=201)
@limiter.limit("10/minute")
def create_company(
    request: Request,
    body: CompanyCreateRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> CompanyResponse:
    """Create a standalone company. Joining it happens through invitations."""
    company = get_company_service().create_company(db, body.name, body.settings)
    return CompanyResponse.model_validate(company)


@router.get("/me", response_model=CompanyDetailResponse)
def get_my_company(tenant: TenantContext = Depends(get_tenant), db: Session = Depends(get_db)) -> CompanyDetailResponse:
    company = get_company_service().get_current_company(db, tenant)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return _company_detail(company)


@router.put("/me", response_model=CompanyResponse)
def update_my_company(
    body: CompanyUpdateRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> CompanyResponse:
    company = get_company_service().update_company(db, tenant, body.name, body.settings)
    return CompanyResponse.model_validate(company)


@router.get("/me/members", response_model=list[MemberResponse])
def list_members(tenant: TenantContext = Depends(get_tenant), db: Session = Depends(get_db)) -> list[MemberResponse]:
    members = get_company_service().list_members(db, tenant)
    return [_member_response(m) for m in members if m.user is not None]


@router.post("/me/members/invite", response_model=MemberResponse, status_code=201)
@limiter.limit("20/minute")
def invite_member(
    request: Request,
    body: InviteMemberRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> MemberResponse:
    """Add an existing user to the caller's company."""
    member = get_company_service().invite_member(db, tenant, body.email, body.role.value)
    return _member_response(member)


@router.put("/me/members/{member_id}", response_model=MemberResponse)
def update_member_role(
    member_id: uuid.UUID,
    body: UpdateMemberRoleRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> MemberResponse:
    member = get_company_service().update_member_role(db, tenant, member_id, body.role.value)
    return _member_response(member)


@router.delete("/me/members/{member_id}", status_code=204)
def remove_member(
    member_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> None:
    get_company_service().remove_member(db, tenant, member_id)


@router.get("/{company_id}", response_model=CompanyDetailResponse)
def get_company(
    company_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> CompanyDetailResponse:
    """Get a company by id. Companies of other tenants read as not found."""
    company = get_company_service().get_company(db, tenant, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return _company_detail(company)


@router.put("/{company_id}", response_model=CompanyResponse)
def update_company(
    company_id: uuid.UUID,
    body: CompanyUpdateRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> CompanyResponse:
    company = get_company_service().update_company(db, tenant, body.name, body.settings, public_id=company_id)
    return CompanyResponse.model_validate(company)


@router.delete("/{company_id}", status_code=204)
def delete_company(
    company_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: Session = Depends(get_db),
) -> None:
    get_company_service().delete_company(db, tenant, public_id=company_id)
