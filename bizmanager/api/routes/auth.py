"""Account, session and password-reset endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from bizmanager.api.dependencies import get_auth_service, get_current_user
from bizmanager.core.security import TokenClaims
from bizmanager.models import (
    LoginRequest,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    User,
)
from bizmanager.services.auth import AuthResult, AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a password reset link has been sent."


def _token_response(result: AuthResult) -> TokenResponse:
    return TokenResponse(
        token=result.access_token.token,
        token_type=result.access_token.token_type,
        expires_at=result.access_token.expires_at,
        user=User.model_validate(result.user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)) -> TokenResponse:
    result = await auth.register(payload.email, payload.password, name=payload.name)
    return _token_response(result)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)) -> TokenResponse:
    """Exchange email and password for a bearer token."""

    result = await auth.login(payload.email, payload.password)
    return _token_response(result)


@router.post("/logout", response_model=MessageResponse)
async def logout(auth: AuthService = Depends(get_auth_service)) -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""

    await auth.logout()
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=User)
async def current_profile(
    current_user: TokenClaims = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    return User.model_validate(await auth.get_user(current_user.user_id))


@router.patch("/me", response_model=User)
async def update_profile(
    payload: ProfileUpdate,
    current_user: TokenClaims = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    changes = {key: getattr(payload, key) for key in payload.model_fields_set}
    user = await auth.update_profile(current_user.user_id, **changes)
    return User.model_validate(user)


@router.post("/password-reset/request", response_model=MessageResponse)
async def request_password_reset(
    payload: PasswordResetRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.request_password_reset(payload.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(
    payload: PasswordResetConfirm,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset successfully")
