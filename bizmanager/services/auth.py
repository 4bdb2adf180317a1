"""Authentication service: credentials, access tokens and password resets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from bizmanager.core.config import settings
from bizmanager.core.exceptions import InvalidCredentialsError, InvalidTokenError, NotFoundError
from bizmanager.core.security import (
    AccessToken,
    TokenClaims,
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    utcnow,
    verify_access_token,
    verify_password,
)
from bizmanager.models.enums import UserRole
from bizmanager.services.notifications import (
    LoggingMailer,
    MailDeliveryError,
    Mailer,
    password_changed_message,
    password_reset_message,
)
from bizmanager.storage.credentials import CredentialStore
from bizmanager.storage.tables import UserRecord
from bizmanager.utils.audit import audited
from bizmanager.utils.throttle import PasswordResetThrottle

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class AuthResult:
    user: UserRecord
    access_token: AccessToken


class AuthService:
    """Verifies credentials, issues stateless JWTs and runs the password-reset flow.

    Every mutating operation commits its own transaction on the session it was
    given. Logout is stateless: nothing is recorded server-side and a token
    stays valid until it expires.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        mailer: Optional[Mailer] = None,
        throttle: Optional[PasswordResetThrottle] = None,
    ) -> None:
        self.session = session
        self.credentials = CredentialStore(session)
        self.mailer: Mailer = mailer or LoggingMailer()
        self.throttle = throttle

    @audited("auth.register")
    async def register(
        self,
        email: str,
        password: str,
        *,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> AuthResult:
        password_hash = await run_in_threadpool(hash_password, password)
        user = await self.credentials.add_user(email=email, password_hash=password_hash, name=name, role=role)
        await self.session.commit()
        logger.info("user.registered", extra={"user_id": user.id})
        return AuthResult(user=user, access_token=self.issue_token(user))

    @audited("auth.login")
    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.credentials.get_user_by_email(email)
        stored_hash = user.password_hash if user is not None else None
        if not await run_in_threadpool(verify_password, password, stored_hash) or user is None:
            raise InvalidCredentialsError()
        return AuthResult(user=user, access_token=self.issue_token(user))

    def issue_token(self, user: UserRecord) -> AccessToken:
        return create_access_token(
            subject=user.id,
            claims={"role": user.role.value, "email": user.email},
        )

    @staticmethod
    def verify_token(token: str) -> TokenClaims:
        return verify_access_token(token)

    @audited("auth.logout")
    async def logout(self) -> None:
        """Nothing to revoke; the client drops its token."""

    async def get_user(self, user_id: str) -> UserRecord:
        user = await self.credentials.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: str, *, name: object = _UNSET, email: object = _UNSET) -> UserRecord:
        user = await self.get_user(user_id)
        changes = {}
        if name is not _UNSET:
            changes["name"] = name
        if email is not _UNSET and email is not None:
            changes["email"] = email
        if changes:
            await self.credentials.update_user(user, **changes)
            await self.session.commit()
        return user

    @audited("auth.password_reset_requested")
    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token if the account exists; callers never learn which case applied."""

        if self.throttle is not None:
            await self.throttle.hit(email)

        user = await self.credentials.get_user_by_email(email)
        if user is None:
            logger.info("password_reset.unknown_account")
            return

        raw_token = generate_reset_token()
        expires_at = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        await self.credentials.add_reset_token(user, hash_reset_token(raw_token), expires_at)
        await self.session.commit()

        message = password_reset_message(
            user.email,
            raw_token,
            name=user.name,
            expires_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
        )
        await self._deliver(message)

    @audited("auth.password_reset")
    async def reset_password(self, token: str, new_password: str) -> None:
        record = await self.credentials.get_reset_token(hash_reset_token(token))
        if record is None or record.used or record.is_expired():
            raise InvalidTokenError()

        user = await self.credentials.get_user(record.user_id)
        if user is None:
            raise InvalidTokenError()

        if not await self.credentials.claim_reset_token(record):
            raise InvalidTokenError()
        password_hash = await run_in_threadpool(hash_password, new_password)
        await self.credentials.update_user(user, password_hash=password_hash)
        await self.credentials.invalidate_reset_tokens(user.id)
        await self.session.commit()

        logger.info("password_reset.completed", extra={"user_id": user.id})
        await self._deliver(password_changed_message(user.email, name=user.name))

    async def _deliver(self, message) -> None:
        try:
            await self.mailer.send(message)
        except MailDeliveryError:
            logger.exception("Mail delivery failed", extra={"subject": message.subject})
