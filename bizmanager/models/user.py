from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from .base import CamelModel
from .enums import UserRole


class User(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=256)
    name: Optional[str] = Field(None, max_length=255)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: User


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None


class PasswordResetRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=320)


class PasswordResetConfirm(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=256)
