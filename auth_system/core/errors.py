"""Domain errors raised by services; API handlers map them to JSON envelopes."""

from typing import Any


class AppError(Exception):
    """Base error carrying an HTTP status and a caller-safe message."""

    status_code: int = 500

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class InputValidationError(AppError):
    """Request data failed a business rule (field-level messages in ``errors``)."""

    status_code = 400


class UnauthorizedError(AppError):
    """Bad credentials, bad or revoked token, inactive account, stale token."""

    status_code = 401

    def __init__(self, message: str = "Invalid credentials", errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message, errors)


class ForbiddenError(AppError):
    """Authenticated, but the role does not qualify."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Duplicate email, or an admin trying to modify their own role/account."""

    status_code = 409
