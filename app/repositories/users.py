"""User and credential repositories."""

from sqlalchemy import func, select

from app.models.user import User, UserCredentials
from app.repositories.base import Repository, row_exists
from app.repositories.tenant import TenantScopedRepository


class UserRepository(Repository[User]):
    """Global user lookups.

    Signup, login and password reset run before any tenant is known, and invites
    look up users outside the inviting company, so these queries are deliberately
    not tenant scoped.
    """

    model = User

    def get_by_email(self, email: str, for_update: bool = False) -> User | None:
        """Look up a user by email. ``for_update`` locks the row until the transaction ends."""
        stmt = select(User).where(func.lower(User.email) == normalize_email(email))
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def email_exists(self, email: str) -> bool:
        """Check every row, soft-deleted ones included, since the column is unique."""
        return row_exists(
            self.db,
            select(User.id).where(func.lower(User.email) == normalize_email(email)),
            include_deleted=True,
        )


class CompanyUserRepository(TenantScopedRepository[User]):
    """Users of the caller's company."""

    model = User


class UserCredentialsRepository(Repository[UserCredentials]):
    model = UserCredentials

    def get_by_user_id(self, user_id: int) -> UserCredentials | None:
        return self.db.scalars(select(UserCredentials).where(UserCredentials.user_id == user_id)).first()


def normalize_email(email: str) -> str:
    return email.strip().lower()
