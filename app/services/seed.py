"""Startup data seeding.

Seeders run in ``order`` and each one is idempotent: it does nothing when the data
it would create is already there.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import transaction
from app.models.company import Company, CompanyMember, Role
from app.models.user import User, UserCredentials
from app.repositories.base import row_exists
from app.repositories.companies import CompanyRepository, MembershipRepository
from app.repositories.users import UserCredentialsRepository, UserRepository, normalize_email
from app.services.avatar import generate_role_avatar
from app.services.passwords import PasswordHasher, get_password_hasher

logger = logging.getLogger("saas_base")


class Seeder:
    order = 0

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def seed(self, db: Session) -> None:
        raise NotImplementedError


class CompanySeeder(Seeder):
    """Create the initial company when the database has none."""

    order = 1

    def seed(self, db: Session) -> None:
        if row_exists(db, select(Company.id), include_deleted=True):
            logger.info("Companies already exist in database, skipping seed")
            return

        name = self.settings.SEED_COMPANY_NAME or "Base"
        with transaction(db):
            company = CompanyRepository(db).add(Company(name=name, settings={}))

            # An admin created before the company gets attached as its owner.
            admin = db.scalars(select(User).order_by(User.id)).first()
            if admin is not None:
                MembershipRepository(db).add(CompanyMember(company_id=company.id, user_id=admin.id, role=Role.OWNER.value))
                admin.company_id = company.id
                UserRepository(db).update(admin)
                logger.info("Admin user %s associated with company %s as Owner", admin.id, company.id)

        logger.info("Seed company created with id %s", company.id)


class UserSeeder(Seeder):
    """Create the admin user as Owner of the first company when there are no users."""

    order = 2

    def __init__(self, settings: Settings | None = None, password_hasher: PasswordHasher | None = None) -> None:
        super().__init__(settings)
        self.password_hasher = password_hasher or get_password_hasher()

    def seed(self, db: Session) -> None:
        if row_exists(db, select(User.id), include_deleted=True):
            return

        email = self.settings.SEED_ADMIN_EMAIL.strip()
        password = self.settings.SEED_ADMIN_PASSWORD
        if not email or not password:
            logger.warning("SEED_ADMIN_EMAIL or SEED_ADMIN_PASSWORD not set, skipping admin seed")
            return

        company = db.scalars(select(Company).order_by(Company.id)).first()
        if company is None:
            logger.warning("No company found to attach the seed admin to")
            return

        name = self.settings.SEED_ADMIN_NAME.strip() or None
        with transaction(db):
            user = UserRepository(db).add(
                User(
                    email=normalize_email(email),
                    name=name,
                    is_active=True,
                    avatar_url=generate_role_avatar(name or "Admin", "admin"),
                    company_id=company.id,
                )
            )
            UserCredentialsRepository(db).add(UserCredentials(user_id=user.id, password_hash=self.password_hasher.hash(password)))
            MembershipRepository(db).add(CompanyMember(company_id=company.id, user_id=user.id, role=Role.OWNER.value))

        logger.info("Seed admin %s created in company %s", user.id, company.id)


def default_seeders() -> list[Seeder]:
    return [CompanySeeder(), UserSeeder()]


def run_seeders(db: Session, seeders: list[Seeder] | None = None) -> None:
    """Run seeders by ascending ``order``."""
    for seeder in sorted(seeders if seeders is not None else default_seeders(), key=lambda s: s.order):
        logger.debug("Running %s", type(seeder).__name__)
        seeder.seed(db)
