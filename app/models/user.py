"""User and credential models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.base import LifecycleMixin, TenantScoped


class User(LifecycleMixin, TenantScoped, Base):
    """Application user.

    ``company_id`` mirrors the user's ``CompanyMember`` row and is updated with it.
    """

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    avatar_url = Column(String(512), nullable=True)
    company_id = Column(Integer, ForeignKey("company.id"), nullable=True, index=True)

    credentials = relationship("UserCredentials", back_populates="user", uselist=False)


class UserCredentials(LifecycleMixin, Base):
    """Password hash for a user (1:1)."""

    __tablename__ = "user_credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, unique=True, index=True)
    password_hash = Column(String(256), nullable=False)
    last_password_change = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="credentials")
