"""Company (tenant) and membership models."""

import enum

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.base import LifecycleMixin, TenantScoped


class Role(str, enum.Enum):
    """Membership role within a company."""

    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"


MANAGEMENT_ROLES = frozenset({Role.OWNER.value, Role.ADMIN.value})


class Company(LifecycleMixin, Base):
    """Tenant boundary."""

    __tablename__ = "company"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False, unique=True)
    settings = Column(JSON, nullable=True)

    members = relationship("CompanyMember", back_populates="company", order_by="CompanyMember.id")


class CompanyMember(LifecycleMixin, TenantScoped, Base):
    """Role of a user within a company. A user belongs to at most one company."""

    __tablename__ = "company_member"
    __table_args__ = (UniqueConstraint("company_id", "user_id", name="uq_company_member_company_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("company.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True, index=True)
    role = Column(String(32), nullable=False, default=Role.OWNER.value)  # Owner, Admin, Member

    company = relationship("Company", back_populates="members")
    user = relationship("User")
