"""Password hashing, JWT issue/verification and one-time link tokens."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Literal

import bcrypt
import jwt

if TYPE_CHECKING:
    from auth_system.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for name and password validation.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

TokenType = Literal["access", "refresh"]
TOKEN_TYPE_ACCESS: TokenType = "access"
TOKEN_TYPE_REFRESH: TokenType = "refresh"

# Claims every token must carry for verify_token to accept it.
REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "id", "type"]


class InvalidTokenError(Exception):
    """Raised when a token is malformed, expired, mis-signed or of the wrong type."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _secret_for(token_type: TokenType, settings: "Settings") -> str:
    if token_type == TOKEN_TYPE_ACCESS:
        return settings.JWT_ACCESS_SECRET.get_secret_value()
    if token_type == TOKEN_TYPE_REFRESH:
        return settings.JWT_REFRESH_SECRET.get_secret_value()
    raise ValueError(f"Unknown token type: {token_type!r}")


def _encode(claims: dict[str, Any], token_type: TokenType, lifetime: timedelta, settings: "Settings") -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **claims,
        "type": token_type,
        # Float seconds; compared with password_changed_at at full precision.
        "iat": now.timestamp(),
        "exp": now + lifetime,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, _secret_for(token_type, settings), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: str, email: str, role: str, settings: "Settings") -> str:
    """Create a short-lived access token with id, email, role and type=access."""
    return _encode(
        {"id": str(user_id), "email": email, "role": role},
        TOKEN_TYPE_ACCESS,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        settings,
    )


def create_refresh_token(user_id: str, settings: "Settings") -> str:
    """
    Create a refresh token with id, type=refresh and a random 128-bit tokenId.

    The tokenId makes two tokens minted in the same second distinct, so each
    can be revoked on its own.
    """
    return _encode(
        {"id": str(user_id), "tokenId": secrets.token_hex(16)},
        TOKEN_TYPE_REFRESH,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        settings,
    )


def refresh_token_expiry(settings: "Settings", issued_at: datetime | None = None) -> datetime:
    """Expiry timestamp stored next to a refresh token in the registry."""
    return (issued_at or datetime.now(UTC)) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def verify_token(token: str, expected_type: TokenType, settings: "Settings") -> dict[str, Any]:
    """
    Decode and validate a token; return its claims.

    Raises InvalidTokenError on bad signature, expiry, wrong issuer/audience,
    missing claims or a type other than expected_type.
    """
    secret = _secret_for(expected_type, settings)
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e
    if claims.get("type") != expected_type:
        raise InvalidTokenError(f"Expected a {expected_type} token")
    if not isinstance(claims.get("id"), str) or not claims["id"]:
        raise InvalidTokenError("Invalid token subject")
    return claims


def hash_one_time_token(raw_token: str) -> str:
    """SHA-256 hex digest of an emailed token; only the digest is stored."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_one_time_token() -> tuple[str, str]:
    """Return (raw token for the email link, digest for the database)."""
    raw = secrets.token_hex(32)
    return raw, hash_one_time_token(raw)
