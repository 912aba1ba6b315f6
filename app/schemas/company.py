"""Pydantic schemas for company and membership endpoints."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from app.models.company import Role


class CompanyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    settings: dict[str, Any] | None = None


class CompanyUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    settings: dict[str, Any] | None = None


class InviteMemberRequest(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER


class UpdateMemberRoleRequest(BaseModel):
    role: Role


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    name: str | None
    avatar_url: str | None
    role: str
    created_at: datetime


class CompanyResponse(BaseModel):
    id: uuid.UUID = Field(validation_alias="public_id")
    name: str
    settings: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class CompanyDetailResponse(CompanyResponse):
    members: list[MemberResponse] = []
