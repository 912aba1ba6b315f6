"""Tests for hashing and token primitives."""

import base64
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.errors import ConfigurationError
from app.services.jwt import JWTService
from app.services.otp import OtpProtector
from app.services.passwords import KEY_SIZE, SALT_SIZE, PasswordHasher
from app.services.tokens import TokenHasher


class TestPasswordHasher:
    def test_hash_and_verify(self):
        hasher = PasswordHasher(iterations=1000)
        record = hasher.hash("correct horse")
        assert hasher.verify(record, "correct horse")
        assert not hasher.verify(record, "wrong horse")

    def test_record_layout_is_salt_then_key(self):
        record = PasswordHasher(iterations=1000).hash("pw")
        assert len(base64.b64decode(record)) == SALT_SIZE + KEY_SIZE

    def test_same_password_gets_fresh_salt(self):
        hasher = PasswordHasher(iterations=1000)
        assert hasher.hash("same") != hasher.hash("same")

    @pytest.mark.parametrize("record", ["not base64!!", base64.b64encode(b"short").decode(), ""])
    def test_malformed_record_never_matches(self, record):
        assert PasswordHasher(iterations=1000).verify(record, "pw") is False

    def test_iteration_count_is_part_of_the_key(self):
        record = PasswordHasher(iterations=1000).hash("pw")
        assert not PasswordHasher(iterations=1001).verify(record, "pw")


class TestTokenHasher:
    def test_deterministic_sha256(self):
        hasher = TokenHasher()
        assert hasher.hash("abc") == hasher.hash("abc")
        assert len(base64.b64decode(hasher.hash("abc"))) == 32
        assert hasher.hash("abc") != hasher.hash("abd")


class TestOtpProtector:
    def test_binds_code_to_user(self):
        protector = OtpProtector(pepper="pepper")
        assert protector.hash_otp(1, "123456") == protector.hash_otp(1, "123456")
        assert protector.hash_otp(1, "123456") != protector.hash_otp(2, "123456")

    def test_pepper_changes_hash(self):
        assert OtpProtector(pepper="a").hash_otp(1, "000000") != OtpProtector(pepper="b").hash_otp(1, "000000")

    def test_falls_back_to_secret(self):
        fallback = OtpProtector(pepper="", fallback_secret="jwt-secret")
        explicit = OtpProtector(pepper="jwt-secret")
        assert fallback.hash_otp(7, "111111") == explicit.hash_otp(7, "111111")

    def test_missing_key_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            OtpProtector(pepper="", fallback_secret="  ")


class TestJWTService:
    def test_access_token_claims(self):
        service = JWTService(secret_key="s" * 32, issuer="iss", audience="aud", expire_minutes=15)
        payload = service.decode_token(service.create_access_token(42, "a@example.com"))
        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["email"] == "a@example.com"
        assert payload["iss"] == "iss"
        assert payload["aud"] == "aud"
        assert payload["exp"] - payload["iat"] == 15 * 60
        assert payload["jti"]

    def test_each_token_has_unique_jti(self):
        service = JWTService(secret_key="s" * 32)
        first = service.decode_token(service.create_access_token(1, "a@example.com"))
        second = service.decode_token(service.create_access_token(1, "a@example.com"))
        assert first["jti"] != second["jti"]

    def test_rejects_wrong_secret_or_audience(self):
        token = JWTService(secret_key="s" * 32).create_access_token(1, "a@example.com")
        assert JWTService(secret_key="t" * 32).decode_token(token) is None
        assert JWTService(secret_key="s" * 32, audience="other").decode_token(token) is None

    def test_rejects_expired_token(self):
        now = datetime.now(timezone.utc)
        service = JWTService(secret_key="s" * 32, issuer="iss", audience="aud")
        token = jwt.encode(
            {"sub": "1", "iss": "iss", "aud": "aud", "iat": now - timedelta(hours=1), "exp": now - timedelta(minutes=1)},
            "s" * 32,
            algorithm="HS256",
        )
        assert service.decode_token(token) is None

    def test_refresh_token_is_32_random_bytes(self):
        service = JWTService(secret_key="s" * 32)
        token = service.create_refresh_token()
        assert len(base64.b64decode(token)) == 32
        assert token != service.create_refresh_token()
