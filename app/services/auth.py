"""Authentication service."""

import logging
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import transaction
from app.errors import DuplicateEmail, InvalidCredentials, InvalidOrExpiredOtp, InvalidOrExpiredToken
from app.models.audit import AuditEventType
from app.models.base import utcnow
from app.models.company import Company, CompanyMember, Role
from app.models.token import PasswordResetToken, RefreshToken
from app.models.user import User, UserCredentials
from app.repositories.companies import CompanyRepository, MembershipRepository
from app.repositories.tokens import PasswordResetTokenRepository, RefreshTokenRepository
from app.repositories.users import UserCredentialsRepository, UserRepository, normalize_email
from app.services.audit import AuditService, get_audit_service
from app.services.avatar import generate_user_avatar
from app.services.jwt import JWTService, get_jwt_service
from app.services.mail import MailService, VerificationCodeEmail, WelcomeEmail, get_mail_service
from app.services.otp import OtpProtector
from app.services.passwords import PasswordHasher, get_password_hasher
from app.services.tokens import TokenHasher

logger = logging.getLogger("saas_base")

OTP_LENGTH = 6
OTP_PATTERN = re.compile(r"^\d{6}$")


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class LoginResult:
    """Successful login: the user plus a fresh token pair. The refresh token is plaintext."""

    user: User
    access_token: str
    refresh_token: str


def generate_otp() -> str:
    """Uniform random 6-digit code."""
    return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"


class AuthService:
    """Handles registration, login, token rotation and password reset.

    Every public method is one unit of work: its writes are committed together or
    not at all. Emails are enqueued only after the commit.
    """

    def __init__(
        self,
        password_hasher: PasswordHasher,
        jwt_service: JWTService,
        token_hasher: TokenHasher,
        otp_protector: OtpProtector,
        mail_service: MailService,
        audit_service: AuditService,
        refresh_token_days: int | None = None,
        otp_expire_minutes: int | None = None,
    ) -> None:
        settings = get_settings()
        self.password_hasher = password_hasher
        self.jwt_service = jwt_service
        self.token_hasher = token_hasher
        self.otp_protector = otp_protector
        self.mail_service = mail_service
        self.audit = audit_service
        self.refresh_token_days = refresh_token_days or settings.REFRESH_TOKEN_EXPIRE_DAYS
        self.otp_expire_minutes = otp_expire_minutes or settings.PASSWORD_RESET_OTP_EXPIRE_MINUTES
        self._dummy_hash: str | None = None

    # --- Registration ---

    def register(self, db: Session, email: str, password: str, name: str | None = None) -> User:
        """Create a user together with its own company, credentials and Owner membership."""
        email = normalize_email(email)
        display_name = name.strip() if name and name.strip() else None
        users = UserRepository(db)
        companies = CompanyRepository(db)

        try:
            with transaction(db):
                if users.email_exists(email):
                    raise DuplicateEmail()

                company_name = f"{display_name or email.split('@')[0]}'s Company"
                if companies.name_exists(company_name):
                    company_name = f"{company_name} ({uuid.uuid4().hex[:6]})"
                company = companies.add(Company(name=company_name, settings={}))

                user = users.add(
                    User(
                        email=email,
                        name=display_name,
                        is_active=True,
                        company_id=company.id,
                        avatar_url=generate_user_avatar(display_name or email.split("@")[0]),
                    )
                )
                UserCredentialsRepository(db).add(
                    UserCredentials(user_id=user.id, password_hash=self.password_hasher.hash(password))
                )
                MembershipRepository(db).add(CompanyMember(company_id=company.id, user_id=user.id, role=Role.OWNER.value))
                self.audit.record(db, AuditEventType.SIGNUP, user_id=user.id)
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            raise DuplicateEmail() from None

        logger.info("Registered user %s with company %s", user.id, company.id)
        self.mail_service.enqueue_welcome_email(user.email, WelcomeEmail(name=user.name or "User"))
        return user

    # --- Login / tokens ---

    def login(self, db: Session, email: str, password: str, ip_address: str, user_agent: str) -> LoginResult:
        """Authenticate by email and password and issue a token pair.

        Unknown email and wrong password fail identically.
        """
        users = UserRepository(db)
        result: LoginResult | None = None

        with transaction(db):
            user = users.get_by_email(email)
            if user is None:
                self._burn_password_check(password)
                self.audit.record(db, AuditEventType.LOGIN_FAILED, None, ip_address, user_agent)
            else:
                credentials = UserCredentialsRepository(db).get_by_user_id(user.id)
                valid = credentials is not None and self.password_hasher.verify(credentials.password_hash, password)
                if not valid or not user.is_active:
                    self.audit.record(db, AuditEventType.LOGIN_FAILED, user.id, ip_address, user_agent)
                else:
                    access_token, refresh_token = self._issue_tokens(db, user, device_info=user_agent)
                    self.audit.record(db, AuditEventType.LOGIN, user.id, ip_address, user_agent)
                    result = LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)

        if result is None:
            raise InvalidCredentials()
        return result

    def refresh(self, db: Session, refresh_token: str) -> TokenPair:
        """Rotate a refresh token: revoke the presented one and issue a new pair."""
        tokens = RefreshTokenRepository(db)

        with transaction(db):
            stored = tokens.get_active_by_hash(self.token_hasher.hash(refresh_token))
            if stored is None or stored.expires_at <= utcnow():
                raise InvalidOrExpiredToken()

            user = UserRepository(db).get(stored.user_id)
            if user is None or not user.is_active:
                raise InvalidOrExpiredToken()

            if not tokens.revoke(stored):
                logger.warning("Refresh token %s was already rotated by a concurrent request", stored.id)
                raise InvalidOrExpiredToken()

            access_token, new_refresh_token = self._issue_tokens(db, user, device_info=stored.device_info)

        return TokenPair(access_token=access_token, refresh_token=new_refresh_token)

    def logout(
        self,
        db: Session,
        current_user_id: int,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Revoke a refresh token owned by ``current_user_id``. Anything else is a silent no-op."""
        tokens = RefreshTokenRepository(db)

        with transaction(db):
            stored = tokens.get_active_by_hash(self.token_hasher.hash(refresh_token))
            if stored is None or stored.user_id != current_user_id:
                logger.debug("Logout ignored for user %s: token not found or not owned", current_user_id)
                return
            if tokens.revoke(stored):
                self.audit.record(db, AuditEventType.LOGOUT, stored.user_id, ip_address, user_agent)

    def get_current_user(self, db: Session, user_id: int) -> User | None:
        return UserRepository(db).get(user_id)

    # --- Password reset ---

    def initiate_password_reset(self, db: Session, email: str) -> None:
        """Send a one-time code to the user, superseding earlier codes.

        Returns the same way whether or not the email is registered.
        """
        pending: tuple[str, VerificationCodeEmail] | None = None
        resets = PasswordResetTokenRepository(db)

        with transaction(db):
            # Row lock serializes concurrent requests for the same user.
            user = UserRepository(db).get_by_email(email, for_update=True)
            if user is None:
                logger.info("Password reset requested for unknown email")
                return

            previous = {t.token_hash for t in resets.list_active_for_user(user.id)}
            otp = generate_otp()
            token_hash = self.otp_protector.hash_otp(user.id, otp)
            while token_hash in previous:
                otp = generate_otp()
                token_hash = self.otp_protector.hash_otp(user.id, otp)

            resets.invalidate_active_for_user(user.id)
            resets.add(
                PasswordResetToken(
                    user_id=user.id,
                    token_hash=token_hash,
                    expires_at=utcnow() + timedelta(minutes=self.otp_expire_minutes),
                )
            )
            pending = (
                user.email,
                VerificationCodeEmail(name=user.name or "User", otp=otp, expiration_minutes=self.otp_expire_minutes),
            )

        if pending:
            self.mail_service.enqueue_verification_code_email(*pending)

    def reset_password(self, db: Session, email: str, otp: str, new_password: str) -> None:
        """Set a new password with a valid code and sign the user out everywhere."""
        if not OTP_PATTERN.match(otp or ""):
            raise InvalidOrExpiredOtp()

        resets = PasswordResetTokenRepository(db)
        with transaction(db):
            user = UserRepository(db).get_by_email(email)
            if user is None:
                raise InvalidOrExpiredOtp()

            token = resets.get_active(user.id, self.otp_protector.hash_otp(user.id, otp))
            if token is None or not resets.consume(token):
                raise InvalidOrExpiredOtp()

            credentials_repo = UserCredentialsRepository(db)
            credentials = credentials_repo.get_by_user_id(user.id)
            if credentials is None:
                credentials = credentials_repo.add(UserCredentials(user_id=user.id, password_hash=""))
            credentials.password_hash = self.password_hasher.hash(new_password)
            credentials.last_password_change = utcnow()

            revoked = RefreshTokenRepository(db).revoke_all_for_user(user.id)
            self.audit.record(db, AuditEventType.RESET_PASSWORD, user.id, details={"revoked_sessions": revoked})

        logger.info("Password reset for user %s; %d sessions revoked", user.id, revoked)

    # --- Helpers ---

    def _issue_tokens(self, db: Session, user: User, device_info: str | None) -> tuple[str, str]:
        access_token = self.jwt_service.create_access_token(user.id, user.email)
        refresh_token = self.jwt_service.create_refresh_token()
        RefreshTokenRepository(db).add(
            RefreshToken(
                user_id=user.id,
                token_hash=self.token_hasher.hash(refresh_token),
                expires_at=utcnow() + timedelta(days=self.refresh_token_days),
                device_info=device_info,
            )
        )
        return access_token, refresh_token

    def _burn_password_check(self, password: str) -> None:
        """Spend the same hashing work as a real check so unknown emails are not faster."""
        if self._dummy_hash is None:
            self._dummy_hash = self.password_hasher.hash(secrets.token_urlsafe(16))
        self.password_hasher.verify(self._dummy_hash, password)


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(
            password_hasher=get_password_hasher(),
            jwt_service=get_jwt_service(),
            token_hasher=TokenHasher(),
            otp_protector=OtpProtector(),
            mail_service=get_mail_service(),
            audit_service=get_audit_service(),
        )
    return _auth_service
