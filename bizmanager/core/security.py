"""Token signing and password hashing primitives."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pwdlib import PasswordHash

from bizmanager.core.config import settings
from bizmanager.core.exceptions import UnauthorizedError

_password_hasher = PasswordHash.recommended()

# Verified against when the account does not exist so both login paths do the same work.
_DUMMY_PASSWORD_HASH = _password_hasher.hash(secrets.token_urlsafe(16))


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every table column stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_at: datetime
    token_type: str = "bearer"


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: str
    email: Optional[str] = None


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password; a missing hash still costs one full verification."""

    if hashed_password is None:
        _password_hasher.verify(plain_password, _DUMMY_PASSWORD_HASH)
        return False
    return _password_hasher.verify(plain_password, hashed_password)


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    claims: Optional[Dict[str, Any]] = None,
) -> AccessToken:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: Dict[str, Any] = {
        "sub": subject,
        "exp": expire,
        "iat": issued_at,
    }
    if claims:
        payload.update(claims)
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return AccessToken(token=token, expires_at=expire.replace(tzinfo=None))


def verify_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise UnauthorizedError("Invalid token") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        raise UnauthorizedError("Invalid token")
    return TokenClaims(user_id=str(subject), role=str(role), email=payload.get("email"))


def generate_reset_token() -> str:
    """Opaque single-use token handed to the user out of band."""

    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def as_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
