"""Auth endpoints: register, login, refresh, logout, profile, password and email flows."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from auth_system.api.dependencies import get_auth_service, get_current_user, get_optional_user
from auth_system.models import User
from auth_system.schemas.auth import (
    AuthPayload,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionStatus,
    TokensPayload,
    UpdateProfileRequest,
    UserPublic,
)
from auth_system.schemas.common import Envelope
from auth_system.services.auth import AuthService

router = APIRouter()

Service = Annotated[AuthService, Depends(get_auth_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]


@router.post(
    "/register",
    response_model=Envelope[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
def register(body: RegisterRequest, service: Service) -> Envelope[AuthPayload]:
    """
    Register a new user and send a verification email.

    Returns the user and a token pair; tokens is null when the server
    requires email verification before login.
    """
    user, tokens = service.register(body)
    message = (
        "Registration successful"
        if tokens is not None
        else "Registration successful. Please check your email to verify your account."
    )
    return Envelope(
        message=message,
        data=AuthPayload(user=UserPublic.model_validate(user), tokens=tokens),
    )


@router.post("/login", response_model=Envelope[AuthPayload])
def login(body: LoginRequest, service: Service) -> Envelope[AuthPayload]:
    """
    Authenticate with email and password; returns the user and a token pair.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    user, tokens = service.login(body)
    return Envelope(
        message="Login successful",
        data=AuthPayload(user=UserPublic.model_validate(user), tokens=tokens),
    )


@router.post("/refresh-token", response_model=Envelope[TokensPayload])
def refresh_token(body: RefreshTokenRequest, service: Service) -> Envelope[TokensPayload]:
    """Exchange a refresh token for a new pair. The presented refresh token is revoked."""
    tokens = service.refresh(body.refresh_token)
    return Envelope(message="Token refreshed", data=TokensPayload(tokens=tokens))


@router.post("/logout", response_model=Envelope[None])
def logout(body: RefreshTokenRequest, service: Service) -> Envelope[None]:
    """Revoke the presented refresh token. Always succeeds."""
    service.logout(body.refresh_token)
    return Envelope(message="Logged out successfully")


@router.post("/logout-all", response_model=Envelope[None])
def logout_all(current_user: CurrentUser, service: Service) -> Envelope[None]:
    """Revoke every refresh token of the authenticated user."""
    service.logout_all(current_user)
    return Envelope(message="Logged out from all devices")


@router.get("/session", response_model=Envelope[SessionStatus])
def session_status(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> Envelope[SessionStatus]:
    """Report whether the caller is signed in. Never fails on a bad or missing token."""
    return Envelope(
        message="Authenticated" if user is not None else "Anonymous",
        data=SessionStatus(
            authenticated=user is not None,
            user=UserPublic.model_validate(user) if user is not None else None,
        ),
    )


@router.get("/profile", response_model=Envelope[UserPublic])
def get_profile(current_user: CurrentUser) -> Envelope[UserPublic]:
    return Envelope(message="Profile retrieved", data=UserPublic.model_validate(current_user))


@router.put("/profile", response_model=Envelope[UserPublic])
def update_profile(
    body: UpdateProfileRequest,
    current_user: CurrentUser,
    service: Service,
) -> Envelope[UserPublic]:
    """Update name and/or email. Changing the email requires verifying it again."""
    user = service.update_profile(current_user, body)
    return Envelope(message="Profile updated", data=UserPublic.model_validate(user))


@router.delete("/profile", response_model=Envelope[None])
def delete_profile(current_user: CurrentUser, service: Service) -> Envelope[None]:
    """Soft-delete the caller's own account and revoke its sessions."""
    service.delete_own_account(current_user)
    return Envelope(message="Account deleted successfully")


@router.put("/change-password", response_model=Envelope[TokensPayload])
def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentUser,
    service: Service,
) -> Envelope[TokensPayload]:
    """
    Change the password. All existing sessions are revoked and older access
    tokens stop working; the response carries a fresh pair for this client.
    """
    tokens = service.change_password(current_user, body)
    return Envelope(message="Password updated successfully", data=TokensPayload(tokens=tokens))


@router.get("/verify-email/{token}", response_model=Envelope[None])
def verify_email(token: str, service: Service) -> Envelope[None]:
    service.verify_email(token)
    return Envelope(message="Email verified successfully")


@router.post("/resend-verification", response_model=Envelope[None])
def resend_verification(current_user: CurrentUser, service: Service) -> Envelope[None]:
    service.resend_verification(current_user)
    return Envelope(message="Verification email sent")


@router.post("/forgot-password", response_model=Envelope[None])
def forgot_password(body: ForgotPasswordRequest, service: Service) -> Envelope[None]:
    """Send a reset link if the account exists; the answer is the same either way."""
    service.forgot_password(body.email)
    return Envelope(message="If that email is registered, a password reset link has been sent")


@router.post("/reset-password/{token}", response_model=Envelope[None])
def reset_password(token: str, body: ResetPasswordRequest, service: Service) -> Envelope[None]:
    service.reset_password(token, body.password)
    return Envelope(message="Password reset successful")
