"""Unit tests for auth_system.core.security: password hashing, JWT issue/verify, one-time tokens."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from auth_system.core.config import Settings
from auth_system.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    generate_one_time_token,
    hash_one_time_token,
    hash_password,
    verify_password,
    verify_token,
)
from auth_system.models import User


def _settings(**overrides: object) -> Settings:
    """Settings with test secrets; keyword overrides win."""
    values: dict[str, object] = {
        "JWT_ACCESS_SECRET": "access-secret-for-tests",
        "JWT_REFRESH_SECRET": "refresh-secret-for-tests",
        "BCRYPT_ROUNDS": 4,
        "JWT_ISSUER": "auth-system",
        "JWT_AUDIENCE": "auth-system-users",
        "ACCESS_TOKEN_EXPIRE_MINUTES": 15,
        "REFRESH_TOKEN_EXPIRE_DAYS": 7,
    }
    values.update(overrides)
    return Settings(**values)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("Passw0rd1", rounds=4)
        self.assertNotEqual(hashed, "Passw0rd1")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(verify_password("Passw0rd1", hashed))

    def test_wrong_password_does_not_verify(self) -> None:
        hashed = hash_password("Passw0rd1", rounds=4)
        self.assertFalse(verify_password("Passw0rd2", hashed))

    def test_same_password_gets_different_salts(self) -> None:
        self.assertNotEqual(hash_password("Passw0rd1", rounds=4), hash_password("Passw0rd1", rounds=4))

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("Passw0rd1", "not-a-bcrypt-hash"))


class TestAccessToken(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = _settings()

    def test_claims(self) -> None:
        token = create_access_token("abc123", "a@x.com", "admin", self.settings)
        claims = verify_token(token, "access", self.settings)
        self.assertEqual(claims["id"], "abc123")
        self.assertEqual(claims["email"], "a@x.com")
        self.assertEqual(claims["role"], "admin")
        self.assertEqual(claims["type"], "access")
        self.assertEqual(claims["iss"], "auth-system")
        self.assertEqual(claims["aud"], "auth-system-users")

    def test_default_lifetime_is_fifteen_minutes(self) -> None:
        token = create_access_token("abc123", "a@x.com", "user", self.settings)
        claims = verify_token(token, "access", self.settings)
        self.assertIsInstance(claims["iat"], float)
        self.assertAlmostEqual(claims["exp"] - claims["iat"], 15 * 60, delta=1)

    def test_refresh_token_rejected_as_access(self) -> None:
        token = create_refresh_token("abc123", self.settings)
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", self.settings)

    def test_type_checked_even_with_shared_secret(self) -> None:
        shared = _settings(JWT_ACCESS_SECRET="same", JWT_REFRESH_SECRET="same")
        token = create_refresh_token("abc123", shared)
        with self.assertRaises(InvalidTokenError) as ctx:
            verify_token(token, "access", shared)
        self.assertIn("access", ctx.exception.message)

    def test_wrong_secret_rejected(self) -> None:
        token = create_access_token("abc123", "a@x.com", "user", self.settings)
        other = _settings(JWT_ACCESS_SECRET="some-other-secret")
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", other)

    def test_wrong_audience_rejected(self) -> None:
        token = create_access_token("abc123", "a@x.com", "user", self.settings)
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", _settings(JWT_AUDIENCE="someone-else"))

    def test_wrong_issuer_rejected(self) -> None:
        token = create_access_token("abc123", "a@x.com", "user", _settings(JWT_ISSUER="impostor"))
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", self.settings)

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        token = jwt.encode(
            {
                "id": "abc123",
                "type": "access",
                "iat": past,
                "exp": past + timedelta(minutes=15),
                "iss": "auth-system",
                "aud": "auth-system-users",
            },
            "access-secret-for-tests",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", self.settings)

    def test_missing_claims_rejected(self) -> None:
        token = jwt.encode(
            {"id": "abc123", "type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "access-secret-for-tests",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "access", self.settings)

    def test_garbage_rejected(self) -> None:
        with self.assertRaises(InvalidTokenError):
            verify_token("not.a.jwt", "access", self.settings)


class TestRefreshToken(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = _settings()

    def test_claims_and_lifetime(self) -> None:
        claims = verify_token(create_refresh_token("abc123", self.settings), "refresh", self.settings)
        self.assertEqual(claims["id"], "abc123")
        self.assertEqual(claims["type"], "refresh")
        self.assertEqual(len(claims["tokenId"]), 32)
        int(claims["tokenId"], 16)
        self.assertAlmostEqual(claims["exp"] - claims["iat"], 7 * 24 * 3600, delta=1)

    def test_tokens_issued_together_are_distinct(self) -> None:
        first = create_refresh_token("abc123", self.settings)
        second = create_refresh_token("abc123", self.settings)
        self.assertNotEqual(first, second)
        self.assertNotEqual(
            verify_token(first, "refresh", self.settings)["tokenId"],
            verify_token(second, "refresh", self.settings)["tokenId"],
        )

    def test_access_token_rejected_as_refresh(self) -> None:
        token = create_access_token("abc123", "a@x.com", "user", self.settings)
        with self.assertRaises(InvalidTokenError):
            verify_token(token, "refresh", self.settings)


class TestChangedPasswordAfter(unittest.TestCase):
    def setUp(self) -> None:
        self.changed_at = datetime(2026, 10, 19, 12, 0, 0, 400000, tzinfo=UTC)
        self.user = User(password_changed_at=self.changed_at)

    def test_token_from_earlier_in_same_second_is_stale(self) -> None:
        self.assertTrue(self.user.changed_password_after(self.changed_at.timestamp() - 0.2))

    def test_token_minted_after_change_is_fresh(self) -> None:
        self.assertFalse(self.user.changed_password_after(self.changed_at.timestamp() + 0.2))

    def test_naive_column_value_read_as_utc(self) -> None:
        naive = User(password_changed_at=self.changed_at.replace(tzinfo=None))
        self.assertTrue(naive.changed_password_after(self.changed_at.timestamp() - 0.2))

    def test_never_changed(self) -> None:
        self.assertFalse(User().changed_password_after(0))


class TestOneTimeTokens(unittest.TestCase):
    def test_digest_matches_raw(self) -> None:
        raw, digest = generate_one_time_token()
        self.assertEqual(len(raw), 64)
        self.assertNotEqual(raw, digest)
        self.assertEqual(hash_one_time_token(raw), digest)

    def test_tokens_are_random(self) -> None:
        self.assertNotEqual(generate_one_time_token()[0], generate_one_time_token()[0])


if __name__ == "__main__":
    unittest.main()
