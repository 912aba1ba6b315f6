"""Refresh token hashing."""

import base64
import hashlib


class TokenHasher:
    """SHA-256 digest of opaque, high-entropy tokens. Not for passwords."""

    def hash(self, token: str) -> str:
        return base64.b64encode(hashlib.sha256(token.encode("utf-8")).digest()).decode("ascii")
