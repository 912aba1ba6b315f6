"""Configuration settings for SaaS Base."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./saas_base.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER: str = os.getenv("JWT_ISSUER", "saas-base")
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "saas-base-api")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

    # Password hashing / reset
    PASSWORD_HASH_ITERATIONS: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "600000"))
    PASSWORD_RESET_PEPPER: str = os.getenv("PASSWORD_RESET_PEPPER", "")
    PASSWORD_RESET_OTP_EXPIRE_MINUTES: int = int(os.getenv("PASSWORD_RESET_OTP_EXPIRE_MINUTES", "30"))

    # Mail (ZeptoMail template API)
    MAIL_API_URL: str = os.getenv("MAIL_API_URL", "https://api.zeptomail.com/v1.1")
    MAIL_API_TOKEN: str = os.getenv("MAIL_API_TOKEN", "")
    MAIL_FROM_ADDRESS: str = os.getenv("MAIL_FROM_ADDRESS", "noreply@saas-base.local")
    MAIL_FROM_NAME: str = os.getenv("MAIL_FROM_NAME", "SaaS Base")
    MAIL_WELCOME_TEMPLATE_KEY: str = os.getenv("MAIL_WELCOME_TEMPLATE_KEY", "")
    MAIL_VERIFICATION_TEMPLATE_KEY: str = os.getenv("MAIL_VERIFICATION_TEMPLATE_KEY", "")
    MAIL_TIMEOUT_SECONDS: float = float(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))
    MAIL_WORKERS: int = int(os.getenv("MAIL_WORKERS", "2"))

    # Seeding
    SEED_ENABLED: bool = os.getenv("SEED_ENABLED", "false").lower() == "true"
    SEED_COMPANY_NAME: str = os.getenv("SEED_COMPANY_NAME", "Base")
    SEED_ADMIN_EMAIL: str = os.getenv("SEED_ADMIN_EMAIL", "")
    SEED_ADMIN_PASSWORD: str = os.getenv("SEED_ADMIN_PASSWORD", "")
    SEED_ADMIN_NAME: str = os.getenv("SEED_ADMIN_NAME", "")

    # Application
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8000")
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not os.getenv("JWT_SECRET_KEY"):
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if not self.PASSWORD_RESET_PEPPER:
            errors.append("PASSWORD_RESET_PEPPER is not set - password reset codes are keyed with JWT_SECRET_KEY")
        if not self.MAIL_API_TOKEN:
            errors.append("MAIL_API_TOKEN is not set - emails are logged instead of sent")
        if self.PASSWORD_HASH_ITERATIONS < 100_000 and self.APP_ENV == "production":
            errors.append(f"PASSWORD_HASH_ITERATIONS={self.PASSWORD_HASH_ITERATIONS} is too low for production")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
