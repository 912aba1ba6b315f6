"""Keyed hashing of password reset codes."""

import base64
import hashlib
import hmac

from app.config import get_settings
from app.errors import ConfigurationError


class OtpProtector:
    """HMAC-SHA256 over ``"{user_id}:{otp}"`` so raw codes are never stored.

    The key is the dedicated password reset pepper, or the JWT secret when no pepper
    is configured.
    """

    def __init__(self, pepper: str | None = None, fallback_secret: str | None = None) -> None:
        if pepper is None and fallback_secret is None:
            settings = get_settings()
            pepper = settings.PASSWORD_RESET_PEPPER
            fallback_secret = settings.JWT_SECRET_KEY

        key = pepper if pepper and pepper.strip() else fallback_secret
        if not key or not key.strip():
            raise ConfigurationError(
                "Password reset pepper is required. Configure PASSWORD_RESET_PEPPER or JWT_SECRET_KEY."
            )
        self._key = key.encode("utf-8")

    def hash_otp(self, user_id: int, otp: str) -> str:
        digest = hmac.new(self._key, f"{user_id}:{otp}".encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")
