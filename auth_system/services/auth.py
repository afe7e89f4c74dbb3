"""
Authentication service.

Registration, login, token refresh with rotation, logout, password
change/reset and email verification. Routes stay thin; every rule about
who may obtain or keep a token lives here.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth_system.core.errors import ConflictError, InputValidationError, UnauthorizedError
from auth_system.core.roles import Role
from auth_system.core.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    generate_one_time_token,
    hash_one_time_token,
    hash_password,
    refresh_token_expiry,
    verify_password,
    verify_token,
)
from auth_system.models import User
from auth_system.models.base import as_utc
from auth_system.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenPair,
    UpdateProfileRequest,
)
from auth_system.services.email import EmailService, redact_email
from auth_system.services.sessions import RefreshTokenRegistry

if TYPE_CHECKING:
    from auth_system.core.config import Settings

logger = logging.getLogger(__name__)

# One message per failure family so callers cannot tell which check failed.
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_ACCESS_TOKEN = "Invalid or expired token"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
EMAIL_NOT_VERIFIED = "Please verify your email before logging in"
INVALID_VERIFICATION_TOKEN = "Invalid or expired verification token"
INVALID_RESET_TOKEN = "Invalid or expired reset token"


class AuthService:
    """Service for authentication and session lifecycle."""

    def __init__(self, session: Session, settings: "Settings", email: EmailService | None = None) -> None:
        self.session = session
        self.settings = settings
        self.email = email or EmailService(settings)

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.query(User).filter(User.email == email.strip().lower()).first()

    def _registry(self, user: User) -> RefreshTokenRegistry:
        return RefreshTokenRegistry(self.session, user.id)

    def _token_pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(user.id, user.email, user.role, self.settings),
            refresh_token=create_refresh_token(user.id, self.settings),
            expires_in=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def _issue_tokens(self, user: User) -> TokenPair:
        """Mint an access/refresh pair and register the refresh token (commits)."""
        pair = self._token_pair(user)
        self._registry(user).add(pair.refresh_token, refresh_token_expiry(self.settings))
        return pair

    def _set_password(self, user: User, plain_password: str) -> None:
        user.password_hash = hash_password(plain_password, rounds=self.settings.BCRYPT_ROUNDS)
        user.password_changed_at = datetime.now(UTC)

    def _commit_or_conflict(self, message: str) -> None:
        """Commit; a unique-email violation from a concurrent writer becomes a ConflictError."""
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(message) from e

    def _start_email_verification(self, user: User) -> str:
        raw, digest = generate_one_time_token()
        user.email_verified = False
        user.email_verification_token = digest
        user.email_verification_expires = datetime.now(UTC) + timedelta(
            hours=self.settings.EMAIL_VERIFICATION_EXPIRE_HOURS
        )
        return raw

    def register(self, body: RegisterRequest) -> tuple[User, TokenPair | None]:
        """
        Create a user and send the verification email.

        Returns the user and, unless REQUIRE_EMAIL_VERIFICATION is set, a
        token pair so the client is signed in straight away.

        Raises:
            ConflictError: If the email is already registered
        """
        if self.get_user_by_email(body.email) is not None:
            raise ConflictError("User already exists")

        user = User(
            name=body.name,
            email=body.email,
            password_hash=hash_password(body.password, rounds=self.settings.BCRYPT_ROUNDS),
            role=Role.USER.value,
        )
        raw_token = self._start_email_verification(user)
        self.session.add(user)
        self._commit_or_conflict("User already exists")
        self.session.refresh(user)
        logger.info("User registered", extra={"user_id": user.id, "email": redact_email(user.email)})

        self.email.send_verification_email(user.email, raw_token)

        if self.settings.REQUIRE_EMAIL_VERIFICATION:
            return user, None
        return user, self._issue_tokens(user)

    def login(self, body: LoginRequest) -> tuple[User, TokenPair]:
        """
        Check credentials and issue a token pair.

        Unknown email, disabled account and wrong password all raise the
        same UnauthorizedError.
        """
        user = self.get_user_by_email(body.email)
        if user is None or not user.can_authenticate:
            logger.info("Login rejected", extra={"email": redact_email(body.email), "reason": "unknown_or_inactive"})
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not verify_password(body.password, user.password_hash):
            logger.info("Login rejected", extra={"user_id": user.id, "reason": "bad_password"})
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if self.settings.REQUIRE_EMAIL_VERIFICATION and not user.email_verified:
            raise UnauthorizedError(EMAIL_NOT_VERIFIED)

        user.last_login = datetime.now(UTC)
        pair = self._issue_tokens(user)
        self.session.refresh(user)
        logger.info("Login succeeded", extra={"user_id": user.id})
        return user, pair

    def authenticate_access_token(self, token: str) -> User:
        """
        Resolve a bearer access token to its user.

        Rejects bad/expired/refresh tokens, missing or disabled users, and
        tokens issued before the last password change.
        """
        try:
            claims = verify_token(token, TOKEN_TYPE_ACCESS, self.settings)
        except InvalidTokenError as e:
            logger.debug("Access token rejected: %s", e.message)
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from e
        user = self.session.get(User, claims["id"])
        if user is None or not user.can_authenticate:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        if user.changed_password_after(claims["iat"]):
            logger.info("Stale access token after password change", extra={"user_id": user.id})
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        return user

    def _user_for_refresh_token(self, refresh_token: str) -> tuple[User, dict[str, Any]]:
        try:
            claims = verify_token(refresh_token, TOKEN_TYPE_REFRESH, self.settings)
        except InvalidTokenError as e:
            logger.debug("Refresh token rejected: %s", e.message)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from e
        user = self.session.get(User, claims["id"])
        if user is None or not user.can_authenticate:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)
        return user, claims

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a registered refresh token for a new pair (rotation).

        The presented token must verify AND still be in the user's registry;
        on success it is swapped for the new refresh token atomically.
        """
        user, _claims = self._user_for_refresh_token(refresh_token)
        registry = self._registry(user)
        if not registry.contains(refresh_token):
            logger.warning("Refresh with unregistered token", extra={"user_id": user.id})
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        pair = self._token_pair(user)
        if not registry.rotate(refresh_token, pair.refresh_token, refresh_token_expiry(self.settings)):
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)
        return pair

    def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Unknown, expired or already revoked tokens are ignored."""
        try:
            claims = verify_token(refresh_token, TOKEN_TYPE_REFRESH, self.settings)
        except InvalidTokenError:
            return
        removed = RefreshTokenRegistry(self.session, claims["id"]).remove(refresh_token)
        if removed:
            logger.info("Logout", extra={"user_id": claims["id"]})

    def logout_all(self, user: User) -> int:
        removed = self._registry(user).remove_all()
        logger.info("Logout from all sessions", extra={"user_id": user.id, "revoked": removed})
        return removed

    def update_profile(self, user: User, body: UpdateProfileRequest) -> User:
        """
        Update name and/or email. A new email must be unique and is verified again.

        Raises:
            ConflictError: If the new email belongs to another account
        """
        raw_token = None
        if body.email is not None and body.email != user.email:
            other = self.get_user_by_email(body.email)
            if other is not None and other.id != user.id:
                raise ConflictError("Email already in use")
            user.email = body.email
            raw_token = self._start_email_verification(user)
        if body.name is not None:
            user.name = body.name
        self._commit_or_conflict("Email already in use")
        self.session.refresh(user)
        if raw_token is not None:
            self.email.send_verification_email(user.email, raw_token)
        return user

    def change_password(self, user: User, body: ChangePasswordRequest) -> TokenPair:
        """
        Replace the password, revoke every session and return a fresh pair.

        Access tokens issued before the change stop working (see
        authenticate_access_token).
        """
        if not verify_password(body.current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        self._set_password(user, body.new_password)
        self.session.commit()
        self._registry(user).remove_all()
        logger.info("Password changed", extra={"user_id": user.id})
        return self._issue_tokens(user)

    def delete_own_account(self, user: User) -> None:
        """Soft delete: the record stays but can no longer authenticate."""
        user.is_deleted = True
        user.is_active = False
        self.session.commit()
        self._registry(user).remove_all()
        logger.info("Account soft-deleted by owner", extra={"user_id": user.id})

    def verify_email(self, raw_token: str) -> User:
        digest = hash_one_time_token(raw_token)
        user = self.session.query(User).filter(User.email_verification_token == digest).first()
        expires = as_utc(user.email_verification_expires) if user is not None else None
        if user is None or expires is None or expires <= datetime.now(UTC):
            raise InputValidationError(INVALID_VERIFICATION_TOKEN)
        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        self.session.commit()
        logger.info("Email verified", extra={"user_id": user.id})
        return user

    def resend_verification(self, user: User) -> None:
        if user.email_verified:
            raise InputValidationError("Email is already verified")
        raw_token = self._start_email_verification(user)
        self.session.commit()
        self.email.send_verification_email(user.email, raw_token)

    def forgot_password(self, email: str) -> None:
        """
        Email a reset link if the address belongs to an active account.

        Returns nothing either way so the response cannot reveal whether the
        account exists.
        """
        user = self.get_user_by_email(email)
        if user is None or not user.can_authenticate:
            logger.info("Password reset requested for unknown account", extra={"email": redact_email(email)})
            return
        raw, digest = generate_one_time_token()
        user.password_reset_token = digest
        user.password_reset_expires = datetime.now(UTC) + timedelta(
            minutes=self.settings.PASSWORD_RESET_EXPIRE_MINUTES
        )
        self.session.commit()
        self.email.send_password_reset_email(user.email, raw)

    def reset_password(self, raw_token: str, new_password: str) -> None:
        """Set a new password from a reset link and revoke all refresh tokens."""
        digest = hash_one_time_token(raw_token)
        user = self.session.query(User).filter(User.password_reset_token == digest).first()
        expires = as_utc(user.password_reset_expires) if user is not None else None
        if user is None or expires is None or expires <= datetime.now(UTC) or not user.can_authenticate:
            raise InputValidationError(INVALID_RESET_TOKEN)
        self._set_password(user, new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        self.session.commit()
        self._registry(user).remove_all()
        logger.info("Password reset", extra={"user_id": user.id})
