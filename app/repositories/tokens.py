"""Refresh token and password reset token repositories.

Revocation and consumption use conditional UPDATEs so that concurrent requests on
the same token are decided by the database: exactly one of them sees a changed row.
"""

from datetime import datetime

from sqlalchemy import select, update

from app.models.base import utcnow
from app.models.token import PasswordResetToken, RefreshToken
from app.repositories.base import Repository


class RefreshTokenRepository(Repository[RefreshToken]):
    model = RefreshToken

    def get_active_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Non-revoked token with this hash. Expiry is checked by the caller."""
        return self.db.scalars(
            select(RefreshToken).where(RefreshToken.token_hash == token_hash, RefreshToken.is_revoked.is_(False))
        ).first()

    def revoke(self, token: RefreshToken) -> bool:
        """Revoke ``token`` if still active. Returns False when another request won."""
        now = utcnow()
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token.id, RefreshToken.is_revoked.is_(False))
            .values(is_revoked=True, revoked_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self.db.expire(token, ["is_revoked", "revoked_at", "updated_at"])
        return True

    def revoke_all_for_user(self, user_id: int) -> int:
        now = utcnow()
        result = self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
            .values(is_revoked=True, revoked_at=now, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount


class PasswordResetTokenRepository(Repository[PasswordResetToken]):
    model = PasswordResetToken

    def get_active(self, user_id: int, token_hash: str, now: datetime | None = None) -> PasswordResetToken | None:
        """Unused, unexpired token of ``user_id`` with this hash."""
        now = now or utcnow()
        return self.db.scalars(
            select(PasswordResetToken).where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.is_used.is_(False),
                PasswordResetToken.expires_at > now,
            )
        ).first()

    def list_active_for_user(self, user_id: int, now: datetime | None = None) -> list[PasswordResetToken]:
        now = now or utcnow()
        return list(
            self.db.scalars(
                select(PasswordResetToken).where(
                    PasswordResetToken.user_id == user_id,
                    PasswordResetToken.is_used.is_(False),
                    PasswordResetToken.expires_at > now,
                )
            )
        )

    def invalidate_active_for_user(self, user_id: int) -> int:
        """Mark every unused token of the user as used."""
        now = utcnow()
        result = self.db.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id, PasswordResetToken.is_used.is_(False))
            .values(is_used=True, used_at=now, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def consume(self, token: PasswordResetToken) -> bool:
        """Mark ``token`` used if it still is not. Returns False when another request won."""
        now = utcnow()
        result = self.db.execute(
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token.id, PasswordResetToken.is_used.is_(False))
            .values(is_used=True, used_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self.db.expire(token, ["is_used", "used_at", "updated_at"])
        return True
