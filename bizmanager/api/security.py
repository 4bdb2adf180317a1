"""Authentication utilities for API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bizmanager.core.exceptions import ForbiddenError, UnauthorizedError
from bizmanager.core.security import TokenClaims, verify_access_token
from bizmanager.models import UserRole

_http_bearer = HTTPBearer(auto_error=False)


async def authenticate_user(
    request: Request,
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(_http_bearer),
) -> TokenClaims:
    if bearer_token is None or not bearer_token.credentials:
        raise UnauthorizedError("Authentication required")

    claims = verify_access_token(bearer_token.credentials)
    request.state.user = claims
    return claims


async def require_admin(claims: TokenClaims = Depends(authenticate_user)) -> TokenClaims:
    if claims.role != UserRole.ADMIN.value:
        raise ForbiddenError("Admin privileges required")
    return claims


__all__ = ["authenticate_user", "require_admin"]
