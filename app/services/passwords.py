"""PBKDF2 password hashing."""

import base64
import binascii
import hashlib
import hmac
import secrets

from app.config import get_settings

SALT_SIZE = 16  # 128 bits
KEY_SIZE = 32  # 256 bits
DEFAULT_ITERATIONS = 600_000


class PasswordHasher:
    """Hashes passwords as base64(salt || PBKDF2-HMAC-SHA256(password, salt))."""

    def __init__(self, iterations: int | None = None) -> None:
        if iterations is None:
            iterations = get_settings().PASSWORD_HASH_ITERATIONS
        self.iterations = iterations if iterations > 0 else DEFAULT_ITERATIONS

    def _derive(self, password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, self.iterations, dklen=KEY_SIZE)

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        salt = secrets.token_bytes(SALT_SIZE)
        return base64.b64encode(salt + self._derive(password, salt)).decode("ascii")

    def verify(self, hash_record: str, password: str) -> bool:
        """Check a password against a stored record. Malformed records never match."""
        try:
            raw = base64.b64decode(hash_record, validate=True)
        except (binascii.Error, ValueError):
            return False
        if len(raw) != SALT_SIZE + KEY_SIZE:
            return False

        salt, expected = raw[:SALT_SIZE], raw[SALT_SIZE:]
        return hmac.compare_digest(self._derive(password, salt), expected)


_password_hasher: PasswordHasher | None = None


def get_password_hasher() -> PasswordHasher:
    """Get singleton password hasher instance."""
    global _password_hasher
    if _password_hasher is None:
        _password_hasher = PasswordHasher()
    return _password_hasher
