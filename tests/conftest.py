"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-jwt-signing-0123456789")
os.environ.setdefault("PASSWORD_RESET_PEPPER", "test-reset-pepper")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
os.environ.setdefault("MAIL_API_TOKEN", "")
os.environ.setdefault("SEED_ENABLED", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, get_db  # noqa: E402
from app.services import auth as auth_module  # noqa: E402
from app.services.audit import AuditService  # noqa: E402
from app.services.auth import AuthService  # noqa: E402
from app.services.jwt import JWTService  # noqa: E402
from app.services.otp import OtpProtector  # noqa: E402
from app.services.passwords import PasswordHasher  # noqa: E402
from app.services.tokens import TokenHasher  # noqa: E402


class RecordingMailService:
    """Stands in for MailService; keeps every enqueued email in memory."""

    def __init__(self) -> None:
        self.welcome: list[tuple[str, object]] = []
        self.verification_codes: list[tuple[str, object]] = []

    def enqueue_welcome_email(self, to_email, model) -> None:
        self.welcome.append((to_email, model))

    def enqueue_verification_code_email(self, to_email, model) -> None:
        self.verification_codes.append((to_email, model))

    def last_otp_for(self, email: str) -> str:
        for to_email, model in reversed(self.verification_codes):
            if to_email == email:
                return model.otp
        raise AssertionError(f"No verification code sent to {email}")

    def shutdown(self) -> None:
        pass


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(name="db_session")
def db_session_fixture(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(name="mail")
def mail_fixture() -> RecordingMailService:
    return RecordingMailService()


@pytest.fixture(name="auth_service")
def auth_service_fixture(mail: RecordingMailService):
    """AuthService wired with a recording mailer, installed as the app singleton."""
    service = AuthService(
        password_hasher=PasswordHasher(iterations=1000),
        jwt_service=JWTService(),
        token_hasher=TokenHasher(),
        otp_protector=OtpProtector(),
        mail_service=mail,  # type: ignore[arg-type]
        audit_service=AuditService(),
    )
    previous = auth_module._auth_service
    auth_module._auth_service = service
    yield service
    auth_module._auth_service = previous


@pytest.fixture(name="client")
def client_fixture(db_session: Session, session_factory, auth_service: AuthService):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    import main
    from app.rate_limit import limiter

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    main._session_factory = session_factory
    main.app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(main.app) as c:
        yield c
    limiter.enabled = True
    main.app.dependency_overrides.clear()
    main._session_factory = None


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, auth_service: AuthService):
    """Register a user and log in. Returns ids, credentials and tokens."""
    user = auth_service.register(db_session, "test@example.com", "password123", "Test User")
    result = auth_service.login(db_session, "test@example.com", "password123", "127.0.0.1", "pytest")
    return {
        "id": user.id,
        "public_id": str(user.public_id),
        "email": user.email,
        "password": "password123",
        "company_id": user.company_id,
        "access_token": result.access_token,
        "refresh_token": result.refresh_token,
        "headers": {"Authorization": f"Bearer {result.access_token}"},
    }


@pytest.fixture(name="make_user")
def make_user_fixture(db_session: Session, auth_service: AuthService):
    """Factory: register a user with its own company and return (user, auth headers)."""

    def _make(email: str, password: str = "password123", name: str | None = None):
        user = auth_service.register(db_session, email, password, name)
        result = auth_service.login(db_session, email, password, "127.0.0.1", "pytest")
        return user, {"Authorization": f"Bearer {result.access_token}"}

    return _make
